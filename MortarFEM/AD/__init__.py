"""
Forward-mode automatic differentiation used to linearize the mortar residual.
"""

from .ForwardMode import AdArray, init_ad_array, value

__all__ = [
    'AdArray',
    'init_ad_array',
    'value',
]
