# -*- coding: utf-8 -*-

"""Clone IAM roles between AWS profiles, rewriting an environment pattern on the way."""

__version__ = "1.0.0"
__date__ = "2025-06-14"
