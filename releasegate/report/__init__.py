"""Terminal reporting for releasegate runs.

Modules
-------
renderer
    ``OutcomeRenderer`` turns a ``PipelineOutcome`` into Rich renderables:
    a per-target build table, a summary panel, and install instructions.
"""
