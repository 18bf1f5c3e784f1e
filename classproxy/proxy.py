# proxy.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php

import inspect
import logging
import types
from collections.abc import Mapping

from classproxy.criteria import InstanceCriteria
from classproxy.exceptions import (
    NotFound,
    ProxyDeclarationError
)
from classproxy.utils.attributes import (
    ProxiedAttribute,
    Resolver,
    has_writer,
    raw_value
)
from classproxy.utils.mixins import (
    DEFAULT_FALLBACK,
    ResolutionMixin
)
from classproxy.utils.proxy_utils import (
    record_keys,
    record_value,
    safe_repr
)

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())

__all__ = ('ClassProxy', 'ProxyConfig')


class ProxyConfig(object):
    """
    The proxy configuration of one model class: how to look instances up, how to
    fall back, how to merge the fallback record and which attributes are proxied.

    Subclasses of a model start from a copy of their parent's configuration.
    """

    __slots__ = ('primary_lookup', 'fallback_lookup', 'after_fallback', 'resolvers')

    def __init__(self, parent=None):
        if parent is None:
            self.primary_lookup = None
            self.fallback_lookup = None
            self.after_fallback = None
            self.resolvers = {}
        else:
            self.primary_lookup = parent.primary_lookup
            self.fallback_lookup = parent.fallback_lookup
            self.after_fallback = parent.after_fallback
            self.resolvers = dict(parent.resolvers)

    def __repr__(self):
        return (f"<ProxyConfig primary={self.primary_lookup!r} fallback={self.fallback_lookup!r} "
                f"after={self.after_fallback!r} attributes={list(self.resolvers)}>")


class ClassProxy(ResolutionMixin):
    """
    Mixin for data models with a main data source (a cache, a database, any data
    conversion/merging operation) and a fallback source used when the main one misses.

    A model declares its lookups and proxied attributes once, after the class body::

     class GithubUser(ClassProxy):
         login = None
         name = None
         uppercase_login = None

     GithubUser.primary_fetch(lambda criteria: db.users.find_one(criteria))
     GithubUser.fallback_fetch(lambda criteria, user: api.user(criteria['login']))
     GithubUser.proxy_methods('name', uppercase_login=lambda self: self.login.upper())

     user = GithubUser.fetch({'login': 'heelhook'})   # primary, then fallback
     user.uppercase_login                             # -> 'HEELHOOK'

    ``Debugging``
        Set the CLASSPROXY_TRACE environment variable to log each attribute
        resolution. Set its value to 'full' to see the resolved values as well.
    """

    __slots__ = ()

    def __init_subclass__(cls, **kwargs):
        super(ClassProxy, cls).__init_subclass__(**kwargs)
        cls._proxy_config = ProxyConfig(parent=cls._proxy_config)

    @classmethod
    def _check_callable(cls, fn, what):
        if not callable(fn):
            raise ProxyDeclarationError(cls, None, f"{what} must be callable, got {fn!r}")
        return fn

    @classmethod
    def primary_fetch(cls, fn):
        """
        Establish how the primary source is queried. ``fn(criteria)`` receives the
        criteria given to :meth:`fetch` and returns an instance, or raises NotFound
        (returning None works as well) to trigger the fallback.

        ``Examples``::

            @User.primary_fetch
            def from_db(criteria):
                return session.query(User).filter_by(**criteria).first()
        """
        cls._proxy_config.primary_lookup = cls._check_callable(fn, 'primary_fetch')
        return fn

    @classmethod
    def fallback_fetch(cls, fn):
        """
        Establish the fallback used when the primary source misses, and for proxied
        attributes without a resolver of their own. ``fn(criteria, instance)``
        returns a record exposing ``keys()``.

        ``Examples``::

            @GithubUser.fallback_fetch
            def from_github(criteria, user):
                return api.user(criteria['login'])
        """
        cls._proxy_config.fallback_lookup = cls._check_callable(fn, 'fallback_fetch')
        return fn

    @classmethod
    def after_fallback_fetch(cls, fn):
        """
        Establish the post-processing of fallback records, useful to convert data
        from the fallback format into the model format. ``fn(instance, record)``
        mutates instance.

        ``Examples``::

            @GithubUser.after_fallback_fetch
            def store_login(user, record):
                user.username = record['login']
        """
        cls._proxy_config.after_fallback = cls._check_callable(fn, 'after_fallback_fetch')
        return fn

    @classmethod
    def proxy_methods(cls, *methods, **resolvers):
        """
        Establish attributes to proxy, optionally along with a resolver describing
        how the attribute is loaded instead of the default fallback.

        :param methods:
            attribute names using the default fallback, ``(name, resolver)`` pairs,
            or mappings of names to resolvers
        :param resolvers:
            ``name=resolver`` pairs, declared after the positional ones

        A resolver is called as ``resolver(instance)`` or, if it takes two
        arguments, ``resolver(instance, record)`` with the fallback record.

        ``Examples``::

            User.proxy_methods('name', 'followers',
                               uppercase_login=lambda self: self.login.upper())
        """
        for method in methods:
            if isinstance(method, str):
                cls.proxy_method(method)
            elif isinstance(method, Mapping):
                for name, resolver in method.items():
                    cls.proxy_method(name, resolver)
            elif isinstance(method, tuple) and len(method) == 2:
                cls.proxy_method(*method)
            else:
                raise ProxyDeclarationError(cls, None, f"cannot proxy {method!r}")
        for name, resolver in resolvers.items():
            cls.proxy_method(name, resolver)

    @classmethod
    def proxy_method(cls, name, resolver=None):
        """Proxy a single attribute, see :meth:`proxy_methods`"""
        if not isinstance(name, str) or not name.isidentifier() or name.startswith('_'):
            raise ProxyDeclarationError(cls, name, "only public attribute names can be proxied")

        if resolver is not None:
            resolver = Resolver(resolver, cls, name)

        descriptor = inspect.getattr_static(cls, name, None)
        if not isinstance(descriptor, ProxiedAttribute):
            descriptor = cls._make_proxied_attribute(name, descriptor)
            setattr(cls, name, descriptor)

        config = cls._proxy_config
        if resolver is not None:
            config.resolvers[name] = resolver
        else:
            # a bare redeclaration keeps the resolver declared earlier
            config.resolvers.setdefault(name, None)

        raw_name = f"no_proxy_{name}"
        if not hasattr(cls, raw_name):
            setattr(cls, raw_name, property(descriptor.raw_get))

    @classmethod
    def _make_proxied_attribute(cls, name, existing):
        if existing is None:
            return ProxiedAttribute(name)
        if isinstance(existing, property) or isinstance(existing, types.MemberDescriptorType):
            return ProxiedAttribute(name, wrapped=existing)
        if (isinstance(existing, (classmethod, staticmethod)) or inspect.isroutine(existing)
                or hasattr(type(existing), '__get__')):
            raise ProxyDeclarationError(cls, name, f"{existing!r} cannot be proxied")
        # a plain class attribute is the default value
        return ProxiedAttribute(name, default=existing)

    @classmethod
    def fetch(cls, criteria, skip_fallback=False):
        """
        Find an instance using criteria, through the primary lookup first and, if
        that does not find anything, through the fallback.

        ``Examples``::

            GithubUser.fetch({'login': 'heelhook'})  # -> primary_fetch and,
                                                     # -> if NotFound, fallback_fetch

        :param criteria: passed unchanged to the primary and fallback lookups
        :param skip_fallback: Don't use the fallback when the primary lookup misses
        :return: the instance found, or None
        """
        config = cls._proxy_config
        try:
            if config.primary_lookup is None:
                raise NotFound(criteria)
            found = config.primary_lookup(criteria)
            if found is None:
                raise NotFound(criteria)
        except NotFound:
            log.debug("%s primary lookup missed for %s", cls.__name__, safe_repr(criteria))
            if skip_fallback or config.fallback_lookup is None:
                return None
            return cls._run_fallback(criteria)

        log.debug("%s primary lookup hit for %s", cls.__name__, safe_repr(criteria))
        return found

    @classmethod
    def _run_fallback(cls, criteria, instance=None):
        """Run the shared fallback against instance (a new one if None), merge the
        record into its unset attributes and return it"""
        if instance is None:
            instance = cls()
        config = cls._proxy_config

        instance._in_flight.add(DEFAULT_FALLBACK)
        try:
            if config.fallback_lookup is not None:
                if cls.CLASSPROXY_TRACE:
                    log.info(f"{cls.__name__} fallback for {safe_repr(criteria)}")
                record = config.fallback_lookup(criteria, instance)

                if config.after_fallback is not None:
                    config.after_fallback(instance, record)

                for key in record_keys(record):
                    if not has_writer(instance, key):
                        continue
                    # never clobber what is already known
                    if raw_value(instance, key) is not None:
                        log.debug("%s.%s already set, skipping fallback value", cls.__name__, key)
                        continue
                    setattr(instance, key, record_value(record, key))

            instance._fallbacks_used.add(DEFAULT_FALLBACK)
        finally:
            instance._in_flight.discard(DEFAULT_FALLBACK)
        return instance

    def _fallback_record_(self):
        lookup = type(self)._proxy_config.fallback_lookup
        if lookup is None:
            return None
        return lookup(InstanceCriteria(self), self)
