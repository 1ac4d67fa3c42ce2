#!/usr/bin/env python3
"""Compute layout positions for a saved graph file.

This script:
1. Loads an exported (or raw {nodes, links}) graph JSON file
2. Runs the force simulation headlessly until it settles
3. Writes x/y coordinates back into the file (or to --output)

Usage:
    python scripts/compute_layout.py graph.json
    python scripts/compute_layout.py graph.json --width 1600 --height 1200 -o laid-out.json
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Add src to path
sys.path.insert(0, str(project_root / "src"))

from kglearner.config import settings
from kglearner.exceptions import ImportFormatError
from kglearner.graph.store import GraphStore
from kglearner.layout.engine import LayoutEngine
from kglearner.storage.files import build_export, load_graph_file, save_graph_file

logger = logging.getLogger(__name__)


async def compute_and_store_layout(
    path: Path,
    output: Path,
    width: float,
    height: float,
    max_ticks: int,
    seed: int | None,
) -> int:
    """Lay out the graph in `path` and save it to `output`."""
    try:
        imported = await load_graph_file(path)
    except ImportFormatError as e:
        print(f"Error: {e}")
        return 1

    store = GraphStore()
    graph = store.replace(imported.graph.nodes, imported.graph.links)
    print(f"Loaded {len(graph.nodes)} nodes, {len(graph.links)} links")

    if graph.is_empty():
        print("Nothing to lay out.")
        return 0

    engine = LayoutEngine(width=width, height=height, seed=seed)
    engine.on_graph_changed(graph)

    print("Computing layout...")
    ticks = engine.settle(max_ticks=max_ticks)
    print(f"Layout {engine.state.value} after {ticks} ticks.")

    store.update_positions(engine.positions())

    positions = engine.positions().values()
    xs = [p[0] for p in positions]
    ys = [p[1] for p in positions]
    print(f"Bounding box: x=[{min(xs):.1f}, {max(xs):.1f}], y=[{min(ys):.1f}, {max(ys):.1f}]")

    payload = build_export(
        imported.topic or "",
        imported.status or "",
        store.current,
    )
    await save_graph_file(output, payload)
    print(f"Done! Positions written to {output}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Compute force layout for a graph file")
    parser.add_argument("path", type=Path, help="Graph JSON file")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default: overwrite input)")
    parser.add_argument("--width", type=float, default=settings.layout_width)
    parser.add_argument("--height", type=float, default=settings.layout_height)
    parser.add_argument("--max-ticks", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return asyncio.run(
        compute_and_store_layout(
            args.path,
            args.output or args.path,
            args.width,
            args.height,
            args.max_ticks,
            args.seed,
        )
    )


if __name__ == "__main__":
    sys.exit(main())
