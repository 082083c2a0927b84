# agen8/errors.py
"""
Exceptions raised at the edges of the toolkit (IO, editor, generation).

The validator and the repair pass never raise: problems with a workflow are
reported as ValidationIssue entries instead.
"""


class Agen8Error(Exception):
    """Base class for every error the CLI knows how to report."""


class WorkflowFormatError(Agen8Error):
    """Input is not JSON, or not shaped like an n8n workflow at all."""


class EditorError(Agen8Error):
    """An editor operation referenced an unknown node or a clashing name."""


class GenerationError(Agen8Error):
    """The LLM could not be called or returned no usable workflow JSON."""
