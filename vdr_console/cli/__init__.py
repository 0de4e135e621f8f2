# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Command-line tools for the VDR Console (``vdr-console``)."""
