# mixins.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php

import logging
import os

from classproxy.criteria import InstanceCriteria
from classproxy.exceptions import NotFound
from classproxy.utils.attributes import has_writer, raw_value
from classproxy.utils.proxy_utils import safe_repr, to_dict, to_slots

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())

__all__ = ('ResolutionMixin', 'DEFAULT_FALLBACK')


class _DefaultFallback(object):
    """Marks the shared fallback in the per instance bookkeeping sets"""

    __slots__ = ()

    def __repr__(self):
        return 'DEFAULT_FALLBACK'

    def __reduce__(self):
        return 'DEFAULT_FALLBACK'


DEFAULT_FALLBACK = _DefaultFallback()


class ResolutionMixin(object):

    """
    Base class resolving unset proxied attributes on first read.

    Every instance keeps two sets. ``_fallbacks_used`` records which fallbacks already
    ran on it: the names of attributes whose custom resolver was called, and
    DEFAULT_FALLBACK once the shared fallback ran. None of them runs twice, even when
    it produced nothing. ``_in_flight`` holds the attributes being resolved right
    now; reading one of them again while its resolution is running returns the raw
    value instead of recursing.

    The class providing the configuration (see :class:`classproxy.ClassProxy`) has to
    implement :meth:`_fallback_record_` and :meth:`_run_fallback`.
    """

    __slots__ = ('_fallbacks_used', '_in_flight')

    __excluded__ = ('_in_flight',)

    # Log every attribute resolution at INFO level when set, including the
    # resolved values if set to 'full'.
    CLASSPROXY_TRACE = os.environ.get("CLASSPROXY_TRACE", False)

    _proxy_config = None

    def __new__(cls, *args, **kwargs):
        self = super(ResolutionMixin, cls).__new__(cls)
        self._fallbacks_used = set()
        self._in_flight = set()
        return self

    @property
    def fallbacks_used(self):
        return frozenset(self._fallbacks_used)

    def no_proxy(self, name):
        """Read ``name`` as stored, without triggering any fallback"""
        return raw_value(self, name)

    def _resolve_(self, name):
        """
        Return the value of the proxied attribute ``name``, resolving it first when
        it is unset and a fallback for it is still available.
        """
        value = raw_value(self, name)
        if value is not None or name in self._in_flight:
            return value

        cls = type(self)
        resolver = cls._proxy_config.resolvers.get(name)
        used = self._fallbacks_used
        custom = resolver is not None
        via = None

        self._in_flight.add(name)
        try:
            while True:
                try:
                    if custom and name not in used:
                        record = self._fallback_record_() if resolver.wants_record else None
                        used.add(name)
                        via = 'resolver'
                        value = resolver(self, record)
                    elif (not custom and DEFAULT_FALLBACK not in used
                          and DEFAULT_FALLBACK not in self._in_flight):
                        via = 'default'
                        cls._run_fallback(InstanceCriteria(self), self)
                        # the merge may have set it
                        value = raw_value(self, name)
                    break
                except NotFound:
                    if custom and DEFAULT_FALLBACK not in used:
                        log.debug("%s.%s resolver deferred to the default fallback",
                                  cls.__name__, name)
                        custom = False
                        continue
                    log.debug("%s.%s has no fallback left, leaving it unset", cls.__name__, name)
                    via = None
                    break

            # read-only attributes just hand the value back
            if value is not None and custom and has_writer(self, name):
                setattr(self, name, value)
        finally:
            self._in_flight.discard(name)

        if self.CLASSPROXY_TRACE:
            if self.CLASSPROXY_TRACE == 'full':
                log.info(f"{cls.__name__}.{name} via {via} -> {safe_repr(value)}")
            else:
                log.info(f"{cls.__name__}.{name} via {via}")
        return value

    def _fallback_record_(self):
        """
        This method should be overridden in the derived class.
        It returns the record of the fallback lookup for this instance, for
        resolvers that take one.
        """
        raise NotImplementedError

    @classmethod
    def _run_fallback(cls, criteria, instance=None):
        """
        This method should be overridden in the derived class.
        It runs the shared fallback against instance and merges its record.
        """
        raise NotImplementedError

    def __getstate__(self):
        state = to_dict(self, exclude=self.__excluded__, getter=raw_value)
        state['_fallbacks_used'] = set(self._fallbacks_used)
        return state

    def __setstate__(self, d):
        to_slots(self, d, excluded=self.__excluded__)
        self._in_flight = set()
