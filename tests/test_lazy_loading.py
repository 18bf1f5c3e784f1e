from __future__ import annotations

from unittest import mock

import pytest

from classproxy import DEFAULT_FALLBACK, ClassProxy


@pytest.fixture
def manual_user(simple_class):
    user = simple_class()
    user.login = "heelhook"
    return user


def test_raw_accessor_does_not_load(manual_user, github):
    assert manual_user.no_proxy_name is None
    assert manual_user.no_proxy("name") is None
    github.user.assert_not_called()


def test_reading_unset_attribute_loads_it(manual_user, github):
    assert manual_user.name == "Pablo"
    github.user.assert_called_once_with("heelhook")


def test_explicit_assignment_is_kept(manual_user, github):
    manual_user.name = "my made up name"

    assert manual_user.name == "my made up name"
    github.user.assert_not_called()


def test_default_fallback_does_not_clobber_known_values(github):
    class Model(ClassProxy):
        login = None
        name = None

    Model.fallback_fetch(lambda criteria, obj: {"login": "y", "name": "Pablo"})
    Model.proxy_methods("login", "name")

    obj = Model()
    obj.login = "x"

    assert obj.name == "Pablo"
    assert obj.login == "x"


def test_zero_argument_resolver_uses_known_attributes(manual_user, github):
    assert manual_user.uppercase_login == "HEELHOOK"
    github.user.assert_not_called()


def test_resolved_value_is_written_back(manual_user):
    manual_user.uppercase_login
    assert manual_user.no_proxy_uppercase_login == "HEELHOOK"


def test_last_declared_resolver_wins(manual_user):
    assert manual_user.followers == "second version"


@pytest.fixture
def nil_record_class():
    record = mock.Mock()
    record.keys.return_value = ["method1", "method2"]
    record.method1 = "with value"
    record.method2 = None
    fallback = mock.Mock(return_value=record)

    class Model(ClassProxy):
        method1 = None
        method2 = None
        method3 = None

    Model.fallback_fetch(fallback)
    Model.proxy_methods("method1", "method2", "method3")
    return Model, fallback


def test_default_fallback_runs_once_per_instance(nil_record_class):
    klass, fallback = nil_record_class
    obj = klass()

    assert obj.method1 == "with value"
    assert obj.method3 is None
    fallback.assert_called_once()


def test_nil_results_are_not_retried(nil_record_class):
    klass, fallback = nil_record_class
    obj = klass()

    assert obj.method2 is None
    assert obj.method2 is None
    fallback.assert_called_once()
    assert DEFAULT_FALLBACK in obj.fallbacks_used


def test_each_instance_keeps_its_own_bookkeeping(nil_record_class):
    klass, fallback = nil_record_class

    klass().method1
    klass().method1

    assert fallback.call_count == 2


def test_attribute_style_records_are_merged(record_type):
    class Model(ClassProxy):
        name = None
        login = None

    Model.fallback_fetch(lambda criteria, obj: record_type(name="Pablo", login="heelhook"))
    Model.proxy_methods("name", "login")

    obj = Model()
    assert obj.name == "Pablo"
    assert obj.no_proxy_login == "heelhook"


def test_mapping_keys_shadowing_dict_methods():
    class Model(ClassProxy):
        items = None

    Model.fallback_fetch(lambda criteria, obj: {"items": [1, 2]})
    Model.proxy_methods("items")

    assert Model().items == [1, 2]


def test_fallback_errors_propagate_and_release_the_attribute():
    class Model(ClassProxy):
        name = None

    fallback = mock.Mock(side_effect=[ConnectionError("api down"), {"name": "Pablo"}])
    Model.fallback_fetch(fallback)
    Model.proxy_methods("name")
    obj = Model()

    with pytest.raises(ConnectionError):
        obj.name
    # the failed attempt did not consume the fallback
    assert obj.name == "Pablo"
    assert fallback.call_count == 2


def test_reentrant_read_returns_unset_value():
    seen = []

    class Model(ClassProxy):
        name = None

    def lookup(criteria, obj):
        seen.append(obj.name)
        return {"name": "Pablo"}

    Model.fallback_fetch(lookup)
    Model.proxy_methods("name")

    assert Model().name == "Pablo"
    assert seen == [None]


def test_criteria_reading_other_unset_attribute_does_not_refetch():
    class Model(ClassProxy):
        login = None
        name = None

    fallback = mock.Mock(side_effect=lambda criteria, obj: {"login": criteria["login"] or "anon",
                                                             "name": "Pablo"})
    Model.fallback_fetch(fallback)
    Model.proxy_methods("login", "name")

    obj = Model()
    assert obj.name == "Pablo"
    assert obj.login == "anon"
    fallback.assert_called_once()


def test_slotted_models_store_in_their_slots(github):
    class Slotted(ClassProxy):
        __slots__ = ("login", "name")

    Slotted.fallback_fetch(lambda criteria, obj: github.user(criteria["login"]))
    Slotted.proxy_methods("name")

    obj = Slotted()
    obj.login = "heelhook"
    assert obj.no_proxy_name is None
    assert obj.name == "Pablo"
    assert not hasattr(obj, "__dict__")


def test_wrapped_property_keeps_storing():
    class Model(ClassProxy):
        def __init__(self):
            self._name = None

        @property
        def name(self):
            return self._name

        @name.setter
        def name(self, value):
            self._name = value.title()

    Model.fallback_fetch(lambda criteria, obj: {"name": "pablo"})
    Model.proxy_methods("name")

    obj = Model()
    assert obj.name == "Pablo"
    assert obj._name == "Pablo"


def test_read_only_properties_are_left_out_of_the_merge():
    class Model(ClassProxy):
        name = None

        @property
        def login(self):
            return None

    Model.fallback_fetch(lambda criteria, obj: {"login": "x", "name": "Pablo"})
    Model.proxy_methods("login", "name")

    obj = Model()
    assert obj.name == "Pablo"
    assert obj.login is None


def test_read_only_property_resolver_value_is_returned_without_storing():
    resolver = mock.Mock(return_value="HEELHOOK")

    class Model(ClassProxy):
        @property
        def uppercase_login(self):
            return None

    Model.proxy_methods(uppercase_login=lambda self: resolver())

    obj = Model()
    assert obj.uppercase_login == "HEELHOOK"
    assert obj.no_proxy_uppercase_login is None
    # not stored, and the resolver is spent
    assert obj.uppercase_login is None
    resolver.assert_called_once()
