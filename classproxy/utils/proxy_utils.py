# proxy_utils.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php

import inspect
from collections.abc import Mapping

from classproxy.exceptions import ProxyDeclarationError

_MISSING = object()

#: Parameter kinds that may receive a positional argument
_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY,
               inspect.Parameter.POSITIONAL_OR_KEYWORD)


def slot_names(cls):
    """Collect every slot declared along the mro of cls, skipping __dict__ and __weakref__"""
    names = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get('__slots__', ())
        if isinstance(slots, str):
            slots = (slots,)
        for s in slots:
            if s not in ('__dict__', '__weakref__') and s not in names:
                names.append(s)
    return names


def to_dict(self, exclude=(), getter=None):
    """Gather slot and __dict__ values of self. ``getter(self, name)`` reads slots and
    may return _MISSING for slots that were never set."""
    if getter is None:
        getter = lambda obj, s: getattr(obj, s, _MISSING)  # noqa: E731
    state = {}
    for s in slot_names(type(self)):
        if s in exclude:
            continue
        v = getter(self, s)
        if v is not _MISSING:
            state[s] = v
    state.update((k, v) for k, v in getattr(self, '__dict__', {}).items() if k not in exclude)
    return state


def to_slots(self, d, excluded=()):
    for k, v in d.items():
        setattr(self, k, v)
    for k in excluded:
        setattr(self, k, None)


def record_keys(record):
    """Return the keys of a fallback record, or an empty tuple when it has none.
    Anything exposing an iterable ``keys()`` qualifies."""
    if record is None:
        return ()
    keys = getattr(record, 'keys', None)
    if not callable(keys):
        return ()
    keys = keys()
    try:
        return tuple(keys)
    except TypeError:
        return ()


def record_value(record, key):
    """Read ``key`` from a fallback record. Mappings are subscripted so that keys
    shadowing dict methods (``items``, ``keys``...) still read the stored value."""
    if isinstance(record, Mapping):
        return record[key]
    return getattr(record, key)


def wants_record(fn, owner=None, name=None):
    """
    Decide from its signature whether a resolver receives the fallback record.

    :return: False for ``fn(self)``, True for ``fn(self, record)``
    :raise ProxyDeclarationError: for any other signature
    """
    if not callable(fn):
        raise ProxyDeclarationError(owner, name, f"resolver {fn!r} is not callable")
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError) as exc:
        raise ProxyDeclarationError(owner, name, f"cannot inspect resolver {fn!r}: {exc}") from exc

    params = list(sig.parameters.values())
    positional = [p for p in params if p.kind in _POSITIONAL]
    required_kw = [p for p in params
                   if p.kind == inspect.Parameter.KEYWORD_ONLY and p.default is p.empty]
    if required_kw or any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        raise ProxyDeclarationError(
            owner, name, f"resolver {fn!r} must take (self) or (self, record), got {sig}")
    if len(positional) == 1:
        return False
    elif len(positional) == 2:
        return True
    raise ProxyDeclarationError(
        owner, name, f"resolver {fn!r} must take (self) or (self, record), got {sig}")


def safe_repr(value, limit=200):
    """repr() for log records, clipped to limit characters"""
    text = repr(value)
    if len(text) > limit:
        return text[:limit - 3] + '...'
    return text
