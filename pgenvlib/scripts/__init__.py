"""
Command-line entrypoints, one per operation.  See `utils.entrypoint` for how arguments are parsed.
"""
