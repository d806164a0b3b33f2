from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional

from ..runtime import (
    NativeFunction, ObjArray, ObjClass, ObjFunction, ObjInstance, ObjNull, ObjNumber,
    ObjString, ObjValue, array_get, array_set, bind, bind_static, builtin_method_for,
    find_method, instance_get, instance_set, make_array, make_class, string_get,
)
from ..token_types import TT
from ..tree import Array, ArrayGet, ArraySet, ClassDef, ClassImpl, Get, Set, Supery, TypeAnnotation
from .helpers import add_values, is_compound

if TYPE_CHECKING:
    from ..evaluator import Interpreter
    from ..types import Method

log = logging.getLogger(__name__)

# ---------- Member access ----------

def eval_get(n: Get, interp: 'Interpreter') -> ObjValue:
    obj = interp.evaluate(n.obj)
    name = n.name.value

    match obj:
        case ObjInstance():
            return instance_get(obj, name)
        case ObjClass():
            return _class_member(n, obj, name, interp)
        case _:
            return builtin_method_for(obj, name) or ObjNull()

def _class_member(n: Get, klass: ObjClass, name: str, interp: 'Interpreter') -> ObjValue:
    """
    Through a class only static methods are found. Through `super` any
    method is found and bound to the running `self`, with the defining
    class's superclass as the next `super`.
    """
    from_super = isinstance(n.obj, Supery)
    found = find_method(klass, name, from_super_ref=from_super)

    current = interp.environment.get("self") if from_super else None
    if not isinstance(current, ObjInstance):
        return bind_static(found[0], klass) if found is not None else ObjNull()

    if found is not None:
        method, superclass = found
        return bind(method, current, superclass)

    # `[super init]` reaching past the root class lands on the built-in init
    own = current.methods.get(name)
    if isinstance(own, NativeFunction):
        return own

    return ObjNull()

def eval_set(n: Set, interp: 'Interpreter') -> ObjValue:
    obj = interp.evaluate(n.obj)

    if not isinstance(obj, ObjInstance):
        return ObjNull()

    name = n.name.value
    value = interp.evaluate(n.value)

    if is_compound(n.op):
        value = add_values(instance_get(obj, name), value, n.op)

    instance_set(obj, name, value)
    return value

# ---------- Arrays ----------

def eval_array(n: Array, interp: 'Interpreter') -> ObjArray:
    values = [interp.evaluate(item) for item in n.contents]

    # Literal nil elements are dropped
    return make_array([v for v in values if not isinstance(v, ObjNull)])

def eval_array_get(n: ArrayGet, interp: 'Interpreter') -> ObjValue:
    obj = interp.evaluate(n.obj)
    index = interp.evaluate(n.index)

    match obj:
        case ObjArray():
            return array_get(obj, index)
        case ObjString():
            return string_get(obj, index)
        case _:
            return ObjNull()

def eval_array_set(n: ArraySet, interp: 'Interpreter') -> ObjValue:
    obj = interp.evaluate(n.obj)

    if not isinstance(obj, ObjArray):
        return ObjNull()

    index = interp.evaluate(n.index)
    value = interp.evaluate(n.value)

    if is_compound(n.op):
        value = add_values(array_get(obj, index), value, n.op)

    if not array_set(obj, index, value):
        log.debug("array write at %r out of range", index)

    return value

# ---------- Classes ----------

_FOUNDATION_DEFAULTS: Dict[str, ObjValue] = {
    "NSString": ObjString(""),
    "NSInteger": ObjNumber(0.0),
}

def default_for_type(annotation: Optional[TypeAnnotation]) -> ObjValue:
    """Initial property value implied by its declared type."""
    tok = annotation.type if annotation is not None else None

    if tok is None:
        return ObjNull()

    match tok.type:
        case TT.INT:
            return ObjNumber(0.0)
        case TT.STRING_TYPE:
            return ObjString("")
        case TT.CLASS_IDENT:
            return _FOUNDATION_DEFAULTS.get(tok.value, ObjNull())
        case _:
            return ObjNull()

def eval_class_def(n: ClassDef, interp: 'Interpreter') -> None:
    superclass = interp.evaluate(n.superclass) if n.superclass is not None else None
    if superclass is not None and not isinstance(superclass, ObjClass):
        log.debug("superclass of %s is not a class: %r", n.name.value, superclass)
        superclass = None

    name = n.name.value
    interp.environment.define(name, ObjNull())

    properties: Dict[str, ObjValue] = {}
    for prop in n.properties:
        if prop.initializer is not None:
            properties[prop.name.value] = interp.evaluate(prop.initializer)
        else:
            properties[prop.name.value] = default_for_type(prop.type)

    interp.environment.assign(name, make_class(name, superclass, properties))

def eval_class_impl(n: ClassImpl, interp: 'Interpreter') -> None:
    methods: Dict[str, Method] = {}

    for method in n.methods:
        methods[method.name.value] = ObjFunction(method, interp.environment, method.is_static)

    if not interp.environment.implement_class(n.name.value, methods):
        log.debug("@implementation %s has no matching class", n.name.value)
