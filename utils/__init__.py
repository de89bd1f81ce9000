"""
Utility package setup.

Enables pandas Copy-on-Write globally so that Dataset subsets and feature
frames never share mutable state with the source table.
"""

import pandas as pd

# Copy-on-Write is always on from pandas 3, where setting the option warns.
if int(pd.__version__.split('.')[0]) < 3:
    pd.options.mode.copy_on_write = True
