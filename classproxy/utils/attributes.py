# attributes.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php

import inspect
import types

from classproxy.utils.proxy_utils import wants_record

__all__ = ('ProxiedAttribute', 'Resolver', 'has_writer', 'raw_value')

_MISSING = object()


class Resolver(object):
    """A custom per-attribute resolver along with how it wants to be called"""

    __slots__ = ('fn', 'wants_record')

    def __init__(self, fn, owner=None, name=None):
        self.wants_record = wants_record(fn, owner, name)
        self.fn = fn

    def __call__(self, instance, record=None):
        if self.wants_record:
            return self.fn(instance, record)
        return self.fn(instance)

    def __repr__(self):
        return f"<Resolver {self.fn!r} record={self.wants_record}>"


class ProxiedAttribute(object):

    """
    Data descriptor installed on the model class for every proxied attribute.

    Reads go through the resolution engine of the instance; writes and raw reads go
    straight to storage. Storage is the instance ``__dict__`` unless the attribute
    wraps a descriptor that existed before it was proxied (a property or a slot), in
    which case that descriptor keeps doing the storing.
    """

    __slots__ = ('name', 'wrapped', 'default')

    def __init__(self, name, wrapped=None, default=None):
        self.name = name
        self.wrapped = wrapped
        self.default = default

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance._resolve_(self.name)

    def __set__(self, instance, value):
        if self.wrapped is not None:
            self.wrapped.__set__(instance, value)
        else:
            instance.__dict__[self.name] = value

    def __delete__(self, instance):
        if self.wrapped is not None:
            self.wrapped.__delete__(instance)
        else:
            instance.__dict__.pop(self.name, None)

    def raw_get(self, instance):
        if self.wrapped is None:
            return getattr(instance, '__dict__', {}).get(self.name, self.default)
        if isinstance(self.wrapped, types.MemberDescriptorType):
            # unset slot
            try:
                return self.wrapped.__get__(instance, type(instance))
            except AttributeError:
                return self.default
        return self.wrapped.__get__(instance, type(instance))

    def __repr__(self):
        return f"<ProxiedAttribute {self.name!r}>"


def has_writer(instance, key):
    """
    Whether the fallback merge may assign ``key`` on instance.

    Only public attributes the model already knows about are writable: proxied
    attributes, settable properties and slots, or plain non-method attributes
    set on the class or the instance. Anything else in a fallback record is
    left alone.
    """
    if not isinstance(key, str) or not key.isidentifier() or key.startswith('_'):
        return False
    attr = inspect.getattr_static(instance, key, _MISSING)
    if attr is _MISSING:
        return False
    if isinstance(attr, ProxiedAttribute):
        attr = attr.wrapped
        if attr is None:
            return True
    if isinstance(attr, property):
        return attr.fset is not None
    if hasattr(type(attr), '__set__'):
        return True
    if isinstance(attr, (classmethod, staticmethod)) or inspect.isroutine(attr):
        return False
    return True


def raw_value(instance, name):
    """Read an attribute without going through the proxy; unset reads as None"""
    descriptor = inspect.getattr_static(type(instance), name, None)
    if isinstance(descriptor, ProxiedAttribute):
        return descriptor.raw_get(instance)
    return getattr(instance, name, None)
