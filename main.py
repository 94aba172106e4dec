import argparse
import json
from pathlib import Path
from typing import Any, Optional

from logging_setup import setup_logging
from rules.rules import DIFFICULTY_LEVELS
from solver.solver import count_solutions, create_puzzle, is_valid_placement, solve_puzzle
from solver.types import Grid, InputGrid
from solver.utils import format_grid_rows
from solver.validation import validate_and_normalize_grid, validate_digit, validate_position


def run(grid: Optional[InputGrid]) -> Grid:
    return solve_puzzle(grid)


def run_with_trace(grid: Optional[InputGrid]) -> tuple[Grid, list[str]]:
    trace_log: list[str] = []
    result = solve_puzzle(grid, trace=True, trace_log=trace_log)
    return result, trace_log


def load_puzzle_from_file(input_path: str) -> InputGrid:
    path = Path(input_path)
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"input file not found: {input_path}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"input file is not valid JSON: {input_path}") from exc

    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        raise ValueError("JSON root must be an object or a 9x9 list")

    grid = payload.get("grid")
    if grid is None:
        raise ValueError("JSON must include 'grid'")
    return grid


def check_move(grid: Optional[InputGrid], row: int, col: int, digit: int) -> bool:
    normalized = validate_and_normalize_grid(grid)
    validate_position(row, col)
    validate_digit(digit)
    return is_valid_placement(normalized, row, col, digit)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate, solve, and check 9x9 Sudoku puzzles")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser("generate", help="Generate a puzzle and its solution")
    generate_parser.add_argument("--difficulty", choices=list(DIFFICULTY_LEVELS), default="medium")
    generate_parser.add_argument("--seed", help="Seed string for a reproducible puzzle, e.g. 2024-05-01")
    generate_parser.add_argument("--trace", action="store_true", help="Include generator trace output")

    solve_parser = subparsers.add_parser("solve", help="Solve a puzzle from a JSON input file")
    solve_parser.add_argument("--input", required=True, help="Path to a JSON file with a 9x9 'grid' (0 or null for empty)")
    solve_parser.add_argument("--trace", action="store_true", help="Include solver trace output")

    count_parser = subparsers.add_parser("count", help="Count the solutions of a puzzle from a JSON input file")
    count_parser.add_argument("--input", required=True, help="Path to a JSON file with a 9x9 'grid'")
    count_parser.add_argument("--mode", choices=["auto", "exact", "estimate"], default="exact")
    count_parser.add_argument("--limit", type=int, default=2, help="Stop after this many solutions (0 for no limit)")
    count_parser.add_argument("--max-seconds", type=float, default=2.0)

    validate_parser = subparsers.add_parser("validate", help="Check whether a digit may be placed in a cell")
    validate_parser.add_argument("--input", required=True, help="Path to a JSON file with a 9x9 'grid'")
    validate_parser.add_argument("--row", type=int, required=True)
    validate_parser.add_argument("--col", type=int, required=True)
    validate_parser.add_argument("--digit", type=int, required=True)
    return parser


def main(argv: Optional[list[str]] = None) -> dict[str, Any]:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "generate":
        trace_log: Optional[list[str]] = [] if args.trace else None
        result = create_puzzle(args.difficulty, seed=args.seed, trace=args.trace, trace_log=trace_log)
        output: dict[str, Any] = {
            "difficulty": args.difficulty,
            "puzzle": result["puzzle"],
            "solution": result["solution"],
            "grid_rows": format_grid_rows(result["puzzle"]),
        }
        if args.trace:
            output["trace"] = trace_log
        return output

    grid = load_puzzle_from_file(args.input)
    if args.command == "solve":
        if args.trace:
            solution, trace_log = run_with_trace(grid)
            return {"solution": solution, "trace": trace_log}
        return {"solution": run(grid)}
    if args.command == "count":
        return count_solutions(grid, mode=args.mode, max_seconds=args.max_seconds, limit=args.limit or None)
    return {"valid": check_move(grid, args.row, args.col, args.digit)}


if __name__ == "__main__":
    try:
        print(json.dumps(main(), indent=2))
    except ValueError as exc:
        raise SystemExit(f"Error: {exc}")
