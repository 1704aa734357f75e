from dataclasses import dataclass
from typing import Optional

from coc_api_schema.base import IconURLs, from_json


@dataclass
class League:
    id: int
    name: str
    iconUrls: Optional[IconURLs] = None

    def __post_init__(self):
        if isinstance(self.iconUrls, dict):
            self.iconUrls = from_json(IconURLs, self.iconUrls)


@dataclass
class WarLeague:
    id: int
    name: str
