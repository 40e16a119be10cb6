"""
Millionaire Maker

Statistical profiling and constrained combination generation for
Daily Grand, Lotto Max and Lotto 6/49 draw histories.
"""

__version__ = "1.0.0"
