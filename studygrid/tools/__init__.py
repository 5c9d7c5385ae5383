"""studygrid.tools package

Developer utilities (day view, snapshot validation, headless grid ops).

Keep this package's __init__ free of eager imports so `python -m ...` stays
side-effect free.
"""

__all__: list[str] = []
