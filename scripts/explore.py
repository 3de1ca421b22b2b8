#!/usr/bin/env python3
"""Interactive terminal client for the TopicMap API."""

import asyncio

import httpx

API_BASE = "http://localhost:8000"

HELP_TEXT = """
TopicMap Explorer
=================

Commands:
  /map             - Show the visible map as an outline
  /all             - Show every node, hidden ones included
  /expand <id>     - Explore more under a node
  /toggle <id>     - Collapse or expand a node
  /delete <id>     - Delete a node and its branch
  /focus [id]      - Highlight a node's lineage (no id clears)
  /rename <id> <label> - Change a node label
  /layout          - Rearrange the layout
  /reset           - Clear the whole map
  /help            - Show this help
  /quit            - Exit

Type a topic to start a new tree!
"""


class TopicMapExplorer:
    def __init__(self):
        self.client = httpx.AsyncClient(base_url=API_BASE, timeout=180.0)

    async def close(self):
        await self.client.aclose()

    async def _call(self, method: str, url: str, **kwargs) -> dict:
        response = await self.client.request(method, url, **kwargs)
        if response.status_code >= 400:
            data = response.json()
            raise RuntimeError(data.get("message") or response.text)
        return response.json()

    async def outline(self, show_hidden: bool = False) -> str:
        """Render the map as an indented outline."""
        try:
            data = await self._call("GET", "/v1/map")
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        return format_outline(data, show_hidden)

    async def expand(self, topic: str, parent_id: str | None = None) -> str:
        """Seed a new tree or explore more under a node."""
        try:
            data = await self._call(
                "POST", "/v1/map/expand", json={"topic": topic, "parent_id": parent_id}
            )
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"

        if not data["succeeded"]:
            return f"Expansion failed: {data.get('error')}"
        return f"Added {len(data['new_node_ids'])} nodes\n" + format_outline(data["map"])

    async def expand_node(self, node_id: str) -> str:
        try:
            data = await self._call("GET", "/v1/map")
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        label = next((n["label"] for n in data["nodes"] if n["id"] == node_id), None)
        if label is None:
            return f"Unknown node: {node_id}"
        return await self.expand(label, parent_id=node_id)

    async def toggle(self, node_id: str) -> str:
        try:
            data = await self._call("POST", f"/v1/map/nodes/{node_id}/toggle")
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        state = "collapsed" if data["collapsed"] else "expanded"
        return f"{node_id} {state}\n" + format_outline(data["map"])

    async def delete(self, node_id: str) -> str:
        try:
            data = await self._call("DELETE", f"/v1/map/nodes/{node_id}")
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        return f"Removed {len(data['removed_ids'])} nodes\n" + format_outline(data["map"])

    async def focus(self, node_id: str | None) -> str:
        try:
            data = await self._call("POST", "/v1/map/focus", json={"node_id": node_id})
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        return format_outline(data)

    async def rename(self, node_id: str, label: str) -> str:
        try:
            data = await self._call("PATCH", f"/v1/map/nodes/{node_id}", json={"label": label})
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        return format_outline(data)

    async def layout(self) -> str:
        try:
            data = await self._call("POST", "/v1/map/layout")
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        return "Layout updated" if data["changed"] else "Layout unchanged"

    async def reset(self) -> str:
        try:
            await self._call("POST", "/v1/map/reset")
        except (httpx.HTTPError, RuntimeError) as e:
            return f"Error: {e}"
        return "Map cleared"


def format_outline(data: dict, show_hidden: bool = False) -> str:
    """Indented tree of the map; markers: [+] collapsed, [-] open, [*] explore more."""
    nodes = {n["id"]: n for n in data["nodes"]}
    children: dict[str, list[str]] = {}
    has_parent: set[str] = set()
    for e in data["edges"]:
        children.setdefault(e["source"], []).append(e["target"])
        has_parent.add(e["target"])

    if not nodes:
        return "(empty map)"

    lines: list[str] = []
    stack = [(nid, 0) for nid in reversed(list(nodes)) if nid not in has_parent]
    while stack:
        nid, depth = stack.pop()
        node = nodes[nid]
        if node["hidden"] and not show_hidden:
            continue
        if node["can_expand"]:
            marker = "[*]"
        else:
            marker = "[+]" if node["collapsed"] else "[-]"
        focus = {"connected": " <", "dimmed": ""}.get(node["focus_state"], "")
        lines.append(f"{'  ' * depth}{marker} {node['label']}  ({nid}){focus}")
        for child in reversed(children.get(nid, [])):
            stack.append((child, depth + 1))

    return "\n".join(lines)


async def main():
    print(HELP_TEXT)

    explorer = TopicMapExplorer()

    # Check connection
    try:
        await explorer.client.get("/health")
        print("Connected to TopicMap API at", API_BASE)
    except httpx.HTTPError:
        print(f"Error: Cannot connect to TopicMap API at {API_BASE}")
        print("Make sure the API is running: python -m topicmap.api.main")
        return

    print("-" * 50)

    try:
        while True:
            try:
                user_input = input("\nTopic: ").strip()
            except EOFError:
                break

            if not user_input:
                continue

            command, _, rest = user_input.partition(" ")
            command = command.lower()
            rest = rest.strip()

            if command in ["/quit", "/exit", "/q"]:
                print("Goodbye!")
                break
            elif command == "/help":
                print(HELP_TEXT)
            elif command == "/map":
                print(await explorer.outline())
            elif command == "/all":
                print(await explorer.outline(show_hidden=True))
            elif command == "/expand" and rest:
                print("Generating...")
                print(await explorer.expand_node(rest))
            elif command == "/toggle" and rest:
                print(await explorer.toggle(rest))
            elif command == "/delete" and rest:
                print(await explorer.delete(rest))
            elif command == "/focus":
                print(await explorer.focus(rest or None))
            elif command == "/rename" and rest:
                node_id, _, label = rest.partition(" ")
                print(await explorer.rename(node_id, label.strip()))
            elif command == "/layout":
                print(await explorer.layout())
            elif command == "/reset":
                print(await explorer.reset())
            elif command.startswith("/"):
                print(f"Unknown command: {command}. Type /help for commands.")
            else:
                print("Generating...")
                print(await explorer.expand(user_input))

    finally:
        await explorer.close()


if __name__ == "__main__":
    asyncio.run(main())
