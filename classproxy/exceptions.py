# exceptions.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php

""" Module containing all exceptions thrown throughout the classproxy package, """


class ClassProxyError(Exception):
    """ Base class for all package exceptions """


class NotFound(ClassProxyError):
    """ Thrown by a primary lookup on a miss, or by a custom resolver to hand
    the attribute over to the default fallback. """


class ProxyDeclarationError(ClassProxyError, TypeError):
    """
    Thrown when a model class declares its proxy configuration incorrectly.

    :param owner:
        The model class the declaration was made on.
    :param name:
        The attribute name involved, or None for class-wide declarations.
    """

    #: A unicode print-format with 2 `%s` for `<class>.<attribute>` and the reason
    _msg = "%s: %s"

    def __init__(self, owner, name, reason):
        super(ProxyDeclarationError, self).__init__(owner, name, reason)
        self.owner = owner
        self.name = name
        self.reason = reason

    def __str__(self):
        where = getattr(self.owner, '__qualname__', repr(self.owner))
        if self.name is not None:
            where = f"{where}.{self.name}"
        return self._msg % (where, self.reason)
