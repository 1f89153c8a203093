from garden_gateway.schemas.common import MessageOut
from garden_gateway.schemas.plant import UserPlantCreate
from garden_gateway.schemas.species import SpeciesOut
from garden_gateway.schemas.task import UserTaskCreate, UserTaskOut
from garden_gateway.schemas.weather import WeatherOut

__all__ = [
    "MessageOut",
    "UserPlantCreate",
    "SpeciesOut",
    "UserTaskCreate",
    "UserTaskOut",
    "WeatherOut",
]
