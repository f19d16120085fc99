from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytest

from sqlcompose.args import DictArgs, ListArgs, NoArgs, RecordArgs, to_arg_source
from sqlcompose.errors import InvalidInput
from sqlcompose.records import (
    Partial,
    column,
    iter_record,
    json_path_map,
    record_dict,
    record_fields,
)


@dataclass
class Owner:
    id: int = column("id")
    created_at: Optional[datetime] = column("created_at,omitempty", json="createdAt", default=None)
    token: str = column(json="-", default="")


@dataclass
class Pet:
    id: int
    name: str = column("name")
    owner: Optional[Owner] = column("owner", default=None)
    internal: str = column("-", default="")


def test_field_descriptors():
    fields = {f.attr: f for f in record_fields(Owner)}
    assert fields["id"].db_name == "id"
    assert fields["created_at"].db_name == "created_at"
    assert fields["created_at"].json_name == "createdAt"
    assert fields["token"].db_name == "token"
    assert fields["token"].json_name is None


def test_skipped_field_is_not_in_sql():
    fields = {f.attr: f for f in record_fields(Pet)}
    assert not fields["internal"].in_sql
    assert fields["owner"].record_type is Owner
    assert fields["name"].record_type is None


def test_record_fields_are_cached():
    assert record_fields(Pet) is record_fields(Pet)


def test_record_fields_rejects_non_record():
    with pytest.raises(InvalidInput):
        record_fields(int)


def test_json_path_map_follows_nested_records():
    paths = json_path_map(Pet)
    assert set(paths) == {"id", "name", "owner", "owner.id", "owner.createdAt"}
    field, db_path = paths["owner.createdAt"]
    assert field.attr == "created_at"
    assert db_path == ("owner", "created_at")


def test_record_dict():
    pet = Pet(1, "Rex", internal="x")
    assert record_dict(pet) == {"id": 1, "name": "Rex", "owner": None}
    assert record_dict(None) == {}


def test_partial_limits_fields_by_json_name():
    pet = Pet(1, "Rex")
    assert record_dict(Partial(pet, ["name"])) == {"name": "Rex"}
    assert record_dict(Partial(pet, [])) == {}
    assert Partial(pet, ["name"]).present == frozenset({"name"})


def test_iter_record_rejects_non_record():
    with pytest.raises(InvalidInput):
        list(iter_record(5))


def test_column_keeps_field_options():
    @dataclass
    class Row:
        tags: list = column("tags", default_factory=list)

    assert Row().tags == []
    assert record_fields(Row)[0].db_name == "tags"


def test_to_arg_source():
    assert isinstance(to_arg_source(None), NoArgs)
    assert isinstance(to_arg_source([1]), ListArgs)
    assert isinstance(to_arg_source((1,)), ListArgs)
    assert isinstance(to_arg_source({"a": 1}), DictArgs)
    assert isinstance(to_arg_source(Pet(1, "Rex")), RecordArgs)
    assert isinstance(to_arg_source(Partial(Pet(1, "Rex"), ["id"])), RecordArgs)
    src = ListArgs([1])
    assert to_arg_source(src) is src
    with pytest.raises(InvalidInput):
        to_arg_source(5)


def test_dict_args_rejects_non_string_keys():
    with pytest.raises(InvalidInput) as ei:
        DictArgs({"a": 1, 1: 2, "b": 3})
    assert ei.value.details["keys"] == ["1"]


def test_arg_source_lookups():
    src = ListArgs(["a", "b"])
    assert src.got_ordinal(2) == ("b", True)
    assert src.got_ordinal(3) == (None, False)
    assert src.got_named("a") == (None, False)
    assert list(src.ordinal_keys()) == [1, 2]

    named = DictArgs({"a": None})
    assert named.got_named("a") == (None, True)
    assert list(named.named_keys()) == ["a"]

    rec = RecordArgs(Pet(1, "Rex"))
    assert rec.got_named("name") == ("Rex", True)
    assert list(rec.named_keys()) == []
    assert NoArgs().is_empty()
