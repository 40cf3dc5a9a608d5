from unitwatch.tui.app import UnitwatchApp

__all__ = [
    'UnitwatchApp',
]
