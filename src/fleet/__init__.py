from src.fleet.distance import Distance, GridCoord, GraphLocation, Point
from src.fleet.models import Agent, Task
from src.fleet.network import RoadNetwork

__all__ = ["Distance", "GridCoord", "GraphLocation", "Point", "Agent", "Task", "RoadNetwork"]
