from dataclasses import dataclass


@dataclass
class Location:
    id: int
    name: str
    isCountry: bool = False
    countryCode: str = ""
    localizedName: str = ""
