"""Row construction and rendering for clonotype tables."""

from .context import RenderContext, justification
from .finish import TableAssembler
from .render import make_table

__all__ = ["RenderContext", "TableAssembler", "justification", "make_table"]
