# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/wizard/defaults.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ImageSpec:
    slug: str        # image name in the FIWARE Lab glance catalog
    name: str        # human readable
    ssh_user: str    # default login user baked into the image


FIWARE_IMAGES: List[ImageSpec] = [
    ImageSpec("base_ubuntu_14.04", "Ubuntu 14.04 LTS", "ubuntu"),
    ImageSpec("base_ubuntu_12.04", "Ubuntu 12.04 LTS", "ubuntu"),
    ImageSpec("base_centos_7", "CentOS 7 Generic Cloud", "centos"),
    ImageSpec("base_centos_6", "CentOS 6 Generic Cloud", "centos"),
]

FIWARE_REGIONS: List[str] = [
    "Britanny",
    "Budapest2",
    "Budapest3",
    "Crete",
    "Genoa",
    "Lannion3",
    "Lannion4",
    "Mexico",
    "Poznan",
    "SaoPaulo",
    "SophiaAntipolis2",
    "Spain2",
    "SpainTenerife",
    "Trento2",
    "Vicenza",
    "Volos",
    "Wroclaw",
    "Zurich2",
    "ZurichS",
]


def find_image(slug: str) -> Optional[ImageSpec]:
    return next((i for i in FIWARE_IMAGES if i.slug == slug), None)


def ssh_user_for(slug: str, default: str = "ubuntu") -> str:
    image = find_image(slug)
    return image.ssh_user if image else default
