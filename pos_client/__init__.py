"""
                POS Store Client

Typed async client and synchronization layer for a point-of-sale
ordering service, with hybrid Mock/Real API architecture.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
