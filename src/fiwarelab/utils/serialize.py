# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/utils/serialize.py

from dataclasses import is_dataclass, asdict
from enum import Enum
from typing import Any, Mapping
from pydantic import BaseModel

from fiwarelab.openstack.catalog import AccessInfo, Endpoint, Service

def to_jsonable(obj: Any) -> Any:
    # catalog records serialize as the document Keystone sent
    if isinstance(obj, (Service, Endpoint)):
        return to_jsonable(obj.raw)

    if isinstance(obj, AccessInfo):
        return to_jsonable(obj.to_dict())

    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")

    if is_dataclass(obj):
        return to_jsonable(asdict(obj))

    if isinstance(obj, Enum):
        return obj.name

    if isinstance(obj, Mapping):
        return {k: to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]

    return obj
