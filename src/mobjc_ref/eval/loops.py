from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..runtime import Returned
from ..tree import For, If, While
from ..utils import is_truthy

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def eval_if_stmt(n: If, interp: 'Interpreter') -> Optional[Returned]:
    if is_truthy(interp.evaluate(n.condition)):
        return interp.execute(n.then_branch)

    if n.else_branch is not None:
        return interp.execute(n.else_branch)

    return None

def eval_while_stmt(n: While, interp: 'Interpreter') -> Optional[Returned]:
    while is_truthy(interp.evaluate(n.condition)):
        outcome = interp.execute(n.body)
        if outcome is not None:
            return outcome

    return None

def eval_for_stmt(n: For, interp: 'Interpreter') -> Optional[Returned]:
    """C-style loop run in the current frame: the initializer's binding is
    shared by every iteration. A missing condition loops until `return`."""
    if n.initializer is not None:
        interp.execute(n.initializer)

    while n.condition is None or is_truthy(interp.evaluate(n.condition)):
        outcome = interp.execute(n.body)
        if outcome is not None:
            return outcome

        if n.change is not None:
            interp.evaluate(n.change)

    return None
