# __init__.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php
# flake8: noqa
import inspect

__version__ = '1.0'

from classproxy.exceptions import (
    ClassProxyError,
    NotFound,
    ProxyDeclarationError
)
from classproxy.criteria import InstanceCriteria
from classproxy.proxy import (
    ClassProxy,
    ProxyConfig
)
from classproxy.utils.attributes import (
    ProxiedAttribute,
    Resolver
)
from classproxy.utils.mixins import (
    DEFAULT_FALLBACK,
    ResolutionMixin
)

__all__ = [name for name, obj in locals().items()
           if not (name.startswith('_') or inspect.ismodule(obj))]
