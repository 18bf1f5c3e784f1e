# __init__.py
#
# This module is part of the classproxy package and is released under
# the BSD License: http://www.opensource.org/licenses/bsd-license.php
