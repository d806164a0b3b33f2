from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional
from typing_extensions import Protocol, TypeAlias

from .tree import BlockLiteral, Function

if TYPE_CHECKING:
    from .evaluator import Interpreter

# ---------- Value Model ----------

@dataclass
class ObjNull:
    def __repr__(self) -> str:
        return "nil"

@dataclass
class ObjNumber:
    value: float
    def __repr__(self) -> str:
        v = self.value
        return str(int(v)) if v.is_integer() and abs(v) < 1e16 else str(v)

@dataclass
class ObjString:
    value: str
    def __repr__(self) -> str:
        return self.value

@dataclass
class ObjBool:
    value: bool
    def __repr__(self) -> str:
        return "YES" if self.value else "NO"

@dataclass(eq=False)
class ArrayEntry:
    """One mutable array cell; cells are shared, not copied, on read."""
    value: 'ObjValue' = field(default_factory=ObjNull)
    def __repr__(self) -> str:
        return repr(self.value)

@dataclass(eq=False)
class ObjArray:
    cells: List[ArrayEntry]
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(cell) for cell in self.cells) + "]"

@dataclass(eq=False)
class ObjFunction:
    declaration: Function
    closure: 'Environment'
    is_static: bool = False
    def __repr__(self) -> str:
        return f"<function {self.declaration.name.value}>"

@dataclass(eq=False)
class ObjBlock:
    declaration: BlockLiteral
    closure: 'Environment'  # snapshot taken when the literal was evaluated
    def __repr__(self) -> str:
        return "<block>"

NativeFn = Callable[['Interpreter', List['ObjValue']], 'ObjValue']

@dataclass(eq=False)
class NativeFunction:
    name: str
    fn: NativeFn
    arity: Optional[int] = None
    is_static: bool = True
    def __repr__(self) -> str:
        return f"<native {self.name}>"

Method: TypeAlias = ObjFunction | NativeFunction

@dataclass(eq=False)
class ObjClass:
    name: str
    superclass: Optional['ObjClass'] = None
    properties: Dict[str, 'ObjValue'] = field(default_factory=dict)
    methods: Dict[str, Method] = field(default_factory=dict)
    def __repr__(self) -> str:
        return self.name

@dataclass(eq=False)
class ObjInstance:
    klass: ObjClass
    properties: Dict[str, 'ObjValue'] = field(default_factory=dict)
    methods: Dict[str, Method] = field(default_factory=dict)
    def __repr__(self) -> str:
        return f"{self.klass.name} instance"

@dataclass(eq=False)
class BuiltinMethod:
    """`count`/`pop` looked up on an array or string, not yet called."""
    name: str
    subject: 'ObjValue'
    def __repr__(self) -> str:
        return f"<builtin {self.name}>"

ObjValue: TypeAlias = (
    ObjNull
    | ObjNumber
    | ObjString
    | ObjBool
    | ObjArray
    | ObjFunction
    | ObjBlock
    | NativeFunction
    | ObjClass
    | ObjInstance
    | BuiltinMethod
)

# ---------- Environments ----------

class Environment:
    """
    One lexical frame: a name -> value map plus a link to the enclosing frame.

    Frames are shared by every closure that captured them. `define` always
    writes into this frame; `assign` updates the nearest frame that already
    binds the name and never creates a binding.
    """

    def __init__(self, enclosing: Optional['Environment'] = None, values: Optional[Dict[str, ObjValue]] = None):
        self.enclosing = enclosing
        self.values: Dict[str, ObjValue] = values if values is not None else {}

    def copy(self, enclosing: Optional['Environment'] = None) -> 'Environment':
        """This frame's own bindings, linked to `enclosing` (default: the same parent)."""
        return Environment(enclosing if enclosing is not None else self.enclosing, dict(self.values))

    def snapshot(self, stop: Optional['Environment']) -> 'Environment':
        """Copy every frame from here outward, sharing `stop` and whatever lies beyond it."""
        if self is stop:
            return self

        parent = self.enclosing
        if parent is not None and parent is not stop:
            parent = parent.snapshot(stop)

        return self.copy(parent)

    def has_own(self, name: str) -> bool:
        return name in self.values

    def get_own(self, name: str) -> ObjValue:
        return self.values[name]

    def define(self, name: str, value: ObjValue) -> None:
        self.values[name] = value

    def get(self, name: str) -> ObjValue:
        env: Optional[Environment] = self

        while env is not None:
            if env.has_own(name):
                return env.get_own(name)
            env = env.enclosing

        return ObjNull()

    def assign(self, name: str, value: ObjValue) -> bool:
        """Rebind in the nearest frame holding `name`; False when none does."""
        env: Optional[Environment] = self

        while env is not None:
            if env.has_own(name):
                env.define(name, value)
                return True
            env = env.enclosing

        return False

    def ancestor(self, distance: int) -> 'Environment':
        env = self

        for _ in range(distance):
            if env.enclosing is None:
                break
            env = env.enclosing

        return env

    def get_at(self, distance: int, name: str) -> ObjValue:
        return self.ancestor(distance).get(name)

    def assign_at(self, distance: int, name: str, value: ObjValue) -> None:
        self.ancestor(distance).define(name, value)

    def implement_class(self, name: str, methods: Dict[str, Method]) -> bool:
        """Merge method bodies into the class bound to `name` (last write wins)."""
        klass = self.get(name)
        if not isinstance(klass, ObjClass):
            return False

        klass.methods.update(methods)
        return True

    def __repr__(self) -> str:
        chain = []
        env: Optional[Environment] = self

        while env is not None:
            chain.append("{" + ", ".join(f"{k}: {v!r}" for k, v in env.values.items()) + "}")
            env = env.enclosing

        return " -> ".join(chain)

# ---------- Exceptions ----------

class MobjcRuntimeError(Exception):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"

class MobjcTypeError(MobjcRuntimeError):
    pass

# ---------- Control flow ----------

@dataclass
class Returned:
    """Completion record of a `return` travelling out to the call boundary.

    Statement handlers hand back None on normal completion and a Returned
    once a `return` has run; loops and blocks stop and pass it upward.
    """
    value: ObjValue

# ---------- Builtin registries ----------

class BuiltinMethodFn(Protocol):
    def __call__(self, interp: 'Interpreter', recv: ObjValue, args: List[ObjValue]) -> ObjValue: ...

MethodRegistry = Dict[str, BuiltinMethodFn]

class Builtins:
    array_methods: MethodRegistry = {}
    string_methods: MethodRegistry = {}
    stdlib_functions: Dict[str, NativeFunction] = {}
    # Root classes are built fresh for every interpreter
    stdlib_classes: List[str] = []
