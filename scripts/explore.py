#!/usr/bin/env python3
"""Interactive CLI for exploring a knowledge graph through the API."""

import asyncio
import os

import httpx
from dotenv import load_dotenv

load_dotenv()

API_BASE = os.getenv("KGLEARNER_API", "http://localhost:8000")

HELP_TEXT = """
Knowledge Graph Learner
=======================

Commands:
  /map <topic> [| status] - Generate a new graph
  /nodes                  - List concepts
  /select                 - Toggle selection mode
  /click <node id>        - Select a node or open its learning plan
  /expand                 - Expand the selected nodes
  /export <file>          - Save the graph as JSON
  /notebook               - Print the notebook source text
  /help                   - Show this help
  /quit                   - Exit
"""


class LearnerClient:
    def __init__(self):
        self.client = httpx.AsyncClient(base_url=API_BASE, timeout=180.0)

    async def close(self):
        await self.client.aclose()

    async def generate(self, topic: str, status: str) -> str:
        """Generate a graph for a topic."""
        try:
            response = await self.client.post(
                "/graph/generate", json={"topic": topic, "status": status}
            )
            response.raise_for_status()
            data = response.json()
            return f"Mapped '{data['topic']}': {len(data['nodes'])} concepts, {len(data['links'])} links"
        except httpx.HTTPError as e:
            return f"Error: {e}"

    async def nodes(self) -> str:
        """List concepts grouped by category."""
        try:
            response = await self.client.get("/graph")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            return f"Error: {e}"

        selected = set(data["selected"])
        lines = [f"{len(data['nodes'])} concepts:"]
        for node in data["nodes"]:
            mark = "*" if node["id"] in selected else " "
            lines.append(f" {mark} {node['id']:20} [{node['group'][:15]:15}] {node['label']}")
        return "\n".join(lines)

    async def toggle_selection(self) -> str:
        try:
            response = await self.client.post("/selection/mode", json={})
            response.raise_for_status()
            return "Selection ON" if response.json()["selection_mode"] else "Selection OFF"
        except httpx.HTTPError as e:
            return f"Error: {e}"

    async def click(self, node_id: str) -> str:
        try:
            response = await self.client.post(f"/nodes/{node_id}/click")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            return f"Error: {e}"

        if data["selection_mode"]:
            return f"Selected: {', '.join(data['selected']) or '(none)'}"
        plan = data.get("plan")
        if not plan:
            return "No plan available."
        result = plan["markdown"]
        for source in plan["sources"]:
            result += f"\n  - {source['title']}: {source['uri']}"
        return result

    async def expand(self) -> str:
        try:
            response = await self.client.post("/graph/expand")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            return f"Error: {e}"

        if not data["called"]:
            return "Nothing selected."
        return f"Added {len(data['added_ids'])} concepts (graph: {data['node_count']} nodes)"

    async def export(self, path: str) -> str:
        try:
            response = await self.client.get("/graph/export")
            response.raise_for_status()
        except httpx.HTTPError as e:
            return f"Error: {e}"
        with open(path, "w", encoding="utf-8") as f:
            f.write(response.text)
        return f"Saved to {path}"

    async def notebook(self) -> str:
        try:
            response = await self.client.get("/graph/notebook")
            response.raise_for_status()
            return response.text
        except httpx.HTTPError as e:
            return f"Error: {e}"


async def main():
    print(HELP_TEXT)

    learner = LearnerClient()

    try:
        await learner.client.get("/health")
        print("Connected to API at", API_BASE)
    except httpx.HTTPError:
        print(f"Error: Cannot connect to API at {API_BASE}")
        print("Make sure the API is running: python -m kglearner.api.main")
        return

    print("-" * 50)

    try:
        while True:
            try:
                user_input = input("\n> ").strip()
            except EOFError:
                break

            if not user_input:
                continue

            command, _, arg = user_input.partition(" ")
            command = command.lower()
            arg = arg.strip()

            if command in ["/quit", "/exit", "/q"]:
                print("Goodbye!")
                break
            elif command == "/help":
                print(HELP_TEXT)
            elif command == "/map" and arg:
                topic, _, status = arg.partition("|")
                print(await learner.generate(topic.strip(), status.strip() or "Beginner"))
            elif command == "/nodes":
                print(await learner.nodes())
            elif command == "/select":
                print(await learner.toggle_selection())
            elif command == "/click" and arg:
                print(await learner.click(arg))
            elif command == "/expand":
                print(await learner.expand())
            elif command == "/export" and arg:
                print(await learner.export(arg))
            elif command == "/notebook":
                print(await learner.notebook())
            else:
                print("Unknown command. Type /help for commands.")
    finally:
        await learner.close()


if __name__ == "__main__":
    asyncio.run(main())
