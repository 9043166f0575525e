"""
Deterministic material calculation engine.

Pure Python math. No I/O.
Given a roof measurement and the order choices (manufacturer, complexity tier,
accessories), produce an exact, rounded-up bill of materials.
"""
