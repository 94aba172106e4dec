from typing import Callable, Optional


Grid = list[list[int]]
InputGrid = list[list[Optional[int]]]
Cell = tuple[int, int]
TraceLog = list[str]
TraceStep = dict[str, object]
CountResult = dict[str, object]
ProgressState = dict[str, int]
Difficulty = str
RandomSource = Callable[[], float]
