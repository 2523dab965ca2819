# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Plots of epoch-wise positioning results"""

from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd


def plot_neu(df: pd.DataFrame, title: str = 'SPP position deviation',
             output: Optional[str] = None):
    """
    Plot North/East/Up deviations against epoch time

    Parameters:
    -----------
    df : pd.DataFrame
        Output of ``solutions_to_dataframe`` with a reference position
        (columns time, n, e, u, ns)
    title : str
        Figure title
    output : str, optional
        Save the figure to this path

    Returns:
    --------
    matplotlib.figure.Figure
    """
    missing = {'time', 'n', 'e', 'u'} - set(df.columns)
    if missing:
        raise ValueError(f"DataFrame lacks columns {sorted(missing)}; pass a reference position")

    fig, axes = plt.subplots(4, 1, figsize=(10, 9), sharex=True)
    for ax, column, label in zip(axes, ('n', 'e', 'u'), ('North', 'East', 'Up')):
        ax.plot(df['time'], df[column], '.', markersize=3)
        ax.set_ylabel(f'{label} (m)')
        ax.grid(True, alpha=0.3)

    axes[3].step(df['time'], df['ns'], where='post')
    axes[3].set_ylabel('Satellites')
    axes[3].set_xlabel('Time (GPST)')
    axes[3].grid(True, alpha=0.3)

    fig.suptitle(title)
    fig.tight_layout()

    if output:
        fig.savefig(output, dpi=150)

    return fig
