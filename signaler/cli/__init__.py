"""
Command-line interface: the Typer app, Rich formatters, and the live event view.
"""
