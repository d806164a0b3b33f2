from __future__ import annotations

import importlib
import logging
import math
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .types import (
    ArrayEntry, BuiltinMethod, Builtins, Environment, Method, MethodRegistry,
    MobjcRuntimeError, MobjcTypeError, NativeFn, NativeFunction, ObjArray,
    ObjBlock, ObjBool, ObjClass, ObjFunction, ObjInstance, ObjNull, ObjNumber,
    ObjString, ObjValue, Returned,
)

if TYPE_CHECKING:
    from .evaluator import Interpreter
    from .tree import Param, Stmt

log = logging.getLogger(__name__)

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("mobjc_ref.stdlib")
    _STDLIB_INITIALIZED = True

# ---------- Registration ----------

def register_method(registry: MethodRegistry, name: str):
    def dec(fn):
        registry[name] = fn
        return fn

    return dec

def register_array(name: str):
    return register_method(Builtins.array_methods, name)

def register_string(name: str):
    return register_method(Builtins.string_methods, name)

def register_stdlib(name: str, *, arity: Optional[int] = None):
    def dec(fn: NativeFn):
        Builtins.stdlib_functions[name] = NativeFunction(name, fn, arity)
        log.debug("registered builtin %s", name)
        return fn

    return dec

def register_class(name: str) -> None:
    if name not in Builtins.stdlib_classes:
        Builtins.stdlib_classes.append(name)

# ---------- Builtin methods on arrays and strings ----------

@register_array("count")
def _array_count(_interp: 'Interpreter', recv: ObjArray, args: List[ObjValue]) -> ObjNumber:
    return ObjNumber(float(len(recv.cells)))

@register_array("pop")
def _array_pop(_interp: 'Interpreter', recv: ObjArray, args: List[ObjValue]) -> ObjValue:
    if not recv.cells:
        return ObjNull()

    return recv.cells.pop().value

@register_string("count")
def _string_count(_interp: 'Interpreter', recv: ObjString, args: List[ObjValue]) -> ObjNumber:
    return ObjNumber(float(len(recv.value)))

def _builtin_registry(recv: ObjValue) -> Optional[MethodRegistry]:
    registry_by_type: Dict[type, MethodRegistry] = {
        ObjArray: Builtins.array_methods,
        ObjString: Builtins.string_methods,
    }

    return registry_by_type.get(type(recv))

def builtin_method_for(recv: ObjValue, name: str) -> Optional[BuiltinMethod]:
    registry = _builtin_registry(recv)

    if registry is not None and name in registry:
        return BuiltinMethod(name, recv)

    return None

def call_builtin_method(interp: 'Interpreter', method: BuiltinMethod, args: List[ObjValue]) -> ObjValue:
    registry = _builtin_registry(method.subject)
    handler = registry.get(method.name) if registry is not None else None

    if handler is None:
        raise MobjcRuntimeError(f"{type(method.subject).__name__} has no builtin method '{method.name}'")

    return handler(interp, method.subject, args)

# ---------- Arrays and strings ----------

def _cell_index(index: ObjValue, size: int) -> Optional[int]:
    if not isinstance(index, ObjNumber) or not math.isfinite(index.value):
        return None

    i = int(index.value)
    if i < 0 or i >= size:
        return None

    return i

def make_array(values: List[ObjValue]) -> ObjArray:
    return ObjArray([ArrayEntry(value) for value in values])

def array_get(array: ObjArray, index: ObjValue) -> ObjValue:
    i = _cell_index(index, len(array.cells))
    if i is None:
        return ObjNull()

    return array.cells[i].value

def array_set(array: ObjArray, index: ObjValue, value: ObjValue) -> bool:
    i = _cell_index(index, len(array.cells))
    if i is None:
        return False

    array.cells[i].value = value
    return True

def string_get(string: ObjString, index: ObjValue) -> ObjValue:
    i = _cell_index(index, len(string.value))
    if i is None:
        return ObjNull()

    return ObjString(string.value[i])

# ---------- Classes and instances ----------

def make_class(
    name: str,
    superclass: Optional[ObjClass] = None,
    properties: Optional[Dict[str, ObjValue]] = None,
) -> ObjClass:
    """Create a class carrying the static `alloc` every class answers to."""
    klass = ObjClass(name, superclass, dict(properties or {}))
    klass.methods["alloc"] = NativeFunction("alloc", lambda _interp, _args: allocate(klass))
    return klass

def property_defaults(klass: ObjClass) -> Dict[str, ObjValue]:
    """Property defaults along the superclass chain; subclasses override."""
    chain: List[ObjClass] = []
    cur: Optional[ObjClass] = klass

    while cur is not None:
        chain.append(cur)
        cur = cur.superclass

    defaults: Dict[str, ObjValue] = {}
    for k in reversed(chain):
        defaults.update(k.properties)

    return defaults

def allocate(klass: ObjClass) -> ObjInstance:
    instance = ObjInstance(klass, property_defaults(klass), dict(klass.methods))
    instance.methods["init"] = NativeFunction(
        "init", lambda _interp, _args: instance, is_static=False,
    )
    return instance

def find_method(
    klass: ObjClass,
    name: str,
    from_instance: bool = False,
    from_super_ref: bool = False,
) -> Optional[Tuple[Method, Optional[ObjClass]]]:
    """
    Walk the superclass chain for `name`.

    Through a bare class reference only static methods are visible. The
    second element is the superclass of the class that defines the method,
    which becomes `super` once the method is bound.
    """
    cur: Optional[ObjClass] = klass

    while cur is not None:
        method = cur.methods.get(name)

        if method is not None and (method.is_static or from_instance or from_super_ref):
            return method, cur.superclass

        cur = cur.superclass

    return None

def instance_method(instance: ObjInstance, name: str) -> Optional[Method]:
    """Unbound method for `name`: the class chain first, then the instance's own table."""
    found = find_method(instance.klass, name, from_instance=True)
    if found is not None:
        return found[0]

    return instance.methods.get(name)

def instance_get(instance: ObjInstance, name: str) -> ObjValue:
    """Properties shadow methods; methods come back bound to the instance."""
    if name in instance.properties:
        return instance.properties[name]

    found = find_method(instance.klass, name, from_instance=True)
    if found is not None:
        method, superclass = found
        return bind(method, instance, superclass)

    own = instance.methods.get(name)
    if own is not None:
        return own

    return ObjNull()

def instance_set(instance: ObjInstance, name: str, value: ObjValue) -> None:
    instance.properties[name] = value

# ---------- Method binding ----------

class BoundEnvironment(Environment):
    """
    Frame a bound method runs on top of.

    Holds `self` and optionally `super`; names of the instance's properties
    and methods read through to the instance, so unqualified property access
    inside a method body sees and updates the live instance.
    """

    def __init__(self, enclosing: Optional[Environment], instance: ObjInstance, superclass: Optional[ObjClass] = None):
        super().__init__(enclosing)
        self.instance = instance
        self.values["self"] = instance

        if superclass is not None:
            self.values["super"] = superclass

    def copy(self, enclosing: Optional[Environment] = None) -> 'BoundEnvironment':
        env = BoundEnvironment(enclosing if enclosing is not None else self.enclosing, self.instance)
        env.values = dict(self.values)
        return env

    def has_own(self, name: str) -> bool:
        return (
            name in self.values
            or name in self.instance.properties
            or instance_method(self.instance, name) is not None
        )

    def get_own(self, name: str) -> ObjValue:
        if name in self.values:
            return self.values[name]

        return instance_get(self.instance, name)

    def define(self, name: str, value: ObjValue) -> None:
        if name not in self.values and name in self.instance.properties:
            instance_set(self.instance, name, value)
            return

        self.values[name] = value

def bind(method: Method, instance: ObjInstance, superclass: Optional[ObjClass] = None) -> Method:
    if isinstance(method, NativeFunction):
        return method

    env = BoundEnvironment(method.closure, instance, superclass)
    return ObjFunction(method.declaration, env, method.is_static)

def bind_static(method: Method, klass: ObjClass) -> Method:
    """A class method called on its class; `self` is the class itself."""
    if isinstance(method, NativeFunction):
        return method

    return ObjFunction(method.declaration, Environment(method.closure, {"self": klass}), method.is_static)

# ---------- Calls ----------

def _bind_params(params: List['Param'], args: List[ObjValue], closure: Environment) -> Environment:
    env = Environment(closure)

    for i, (_, name) in enumerate(params):
        env.define(name.value, args[i] if i < len(args) else ObjNull())

    return env

def _run_body(interp: 'Interpreter', body: List['Stmt'], env: Environment) -> ObjValue:
    outcome = interp.execute_statements(body, env)

    if isinstance(outcome, Returned):
        return outcome.value

    return ObjNull()

def call_function(interp: 'Interpreter', fn: ObjFunction, args: List[ObjValue]) -> ObjValue:
    env = _bind_params(fn.declaration.params, args, fn.closure)
    return _run_body(interp, fn.declaration.body, env)

def call_block(interp: 'Interpreter', block: ObjBlock, args: List[ObjValue]) -> ObjValue:
    env = _bind_params(block.declaration.params, args, block.closure)
    return _run_body(interp, block.declaration.body, env)

def call_value(interp: 'Interpreter', callee: ObjValue, args: List[ObjValue]) -> ObjValue:
    """Invoke `callee`; anything that is not callable yields null."""
    match callee:
        case ObjFunction():
            return call_function(interp, callee, args)
        case ObjBlock():
            return call_block(interp, callee, args)
        case NativeFunction(fn=fn):
            return fn(interp, args)
        case ObjClass():
            return allocate(callee)
        case BuiltinMethod():
            return call_builtin_method(interp, callee, args)
        case _:
            log.debug("call of non-callable %r ignored", callee)
            return ObjNull()

# ---------- Operand checks ----------

def expect_number(value: ObjValue, op: str) -> float:
    if isinstance(value, ObjNumber):
        return value.value

    raise MobjcTypeError(f"Operand of '{op}' must be a number, got {type(value).__name__}")
