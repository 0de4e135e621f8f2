# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""VDR Console: admin API for the verifiable data registry."""

__version__ = "0.1.0"
