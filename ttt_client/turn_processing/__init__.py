"""Local action guards.

Moves and ready-ups flow through the same validator pipelines so the view
(per-cell enabled flags) and the action methods agree on what is allowed.
"""
