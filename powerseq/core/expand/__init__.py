"""Declaration expansion engine.

Every lifecycle declaration expands to a pre-hook, the declaration itself and
a post-hook. The rewrite strategy is the default; the stub strategy is kept
behind an explicit configuration flag.
"""
