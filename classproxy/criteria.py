# criteria.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php

from collections.abc import Mapping

__all__ = ('InstanceCriteria',)


class InstanceCriteria(Mapping):

    """
    Makes the attributes of a model instance accessible as mapping keys, so an
    instance can stand in for the criteria of a fallback lookup.

    When the fallback lookup is triggered by reading an attribute rather than by
    ``fetch``, there is no criteria mapping around. The lookup gets one of these
    instead and can keep writing ``criteria['login']``::

        @GithubUser.fallback_fetch
        def from_github(criteria, user):
            return api.user(criteria['login'])

    Reads go through the proxy, so a key naming another unset proxied attribute
    may resolve it first.
    """

    __slots__ = ('_target',)

    def __init__(self, target):
        object.__setattr__(self, '_target', target)

    @property
    def target(self):
        return self._target

    def __getitem__(self, key):
        target = self._target
        if isinstance(key, str) and hasattr(type(target), key):
            try:
                return getattr(target, key)
            except AttributeError as exc:
                # unset slot
                raise KeyError(key) from exc
        if isinstance(key, str) and key in getattr(target, '__dict__', {}):
            return target.__dict__[key]
        if hasattr(type(target), '__getitem__'):
            return target[key]
        raise KeyError(key)

    def _keys(self):
        target = self._target
        keys = list(type(target)._proxy_config.resolvers)
        for k in getattr(target, '__dict__', {}):
            if not k.startswith('_') and k not in keys:
                keys.append(k)
        return keys

    def __iter__(self):
        return iter(self._keys())

    def __len__(self):
        return len(self._keys())

    def __contains__(self, key):
        return key in self._keys()

    def __getattr__(self, name):
        return getattr(self._target, name)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __repr__(self):
        return f"InstanceCriteria [{self._target!r}] " + ', '.join(self._keys())
