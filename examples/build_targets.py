"""Build Targets Example for keygraph.

This example models the targets of a small C project as a keyed graph:
- Target payloads are Pydantic models
- Edge metadata records why one target depends on another
- The generated-config target depends on itself through a regeneration hook,
  which shows up as a cycle edge in the execution order

Try it with the CLI:
    keygraph resolve examples/build_targets.py --start app
    keygraph tree examples/build_targets.py --start app
"""

from enum import StrEnum, unique

from pydantic import BaseModel

import keygraph as kg


@unique
class DependencyKind(StrEnum):
    """Why a target depends on another."""

    LINK = "link"
    HEADER = "header"
    REGENERATE = "regenerate"


class Target(BaseModel):
    """A build target."""

    name: str
    command: str


builder: kg.GraphBuilder[Target, DependencyKind] = kg.GraphBuilder()

builder.add_node("app", Target(name="app", command="cc -o app main.o util.o"))
builder.add_node("main.o", Target(name="main.o", command="cc -c main.c"))
builder.add_node("util.o", Target(name="util.o", command="cc -c util.c"))
builder.add_node("config.h", Target(name="config.h", command="./configure"))

builder.add_edge("app->main.o", kg.Edge("app", "main.o", DependencyKind.LINK))
builder.add_edge("app->util.o", kg.Edge("app", "util.o", DependencyKind.LINK))
builder.add_edge("main.o->config.h", kg.Edge("main.o", "config.h", DependencyKind.HEADER))
builder.add_edge("util.o->config.h", kg.Edge("util.o", "config.h", DependencyKind.HEADER))
builder.add_edge("config.h->config.h", kg.Edge("config.h", "config.h", DependencyKind.REGENERATE))

graph = builder.build()


if __name__ == "__main__":
    for step in kg.resolve_dependencies(graph, "app"):
        target = graph.node_for_key(step.node_key)
        command = target.command if target is not None else "<missing>"
        cycles = f"  (cycle: {', '.join(step.cyclic_edge_keys)})" if step.cyclic_edge_keys else ""
        print(f"{step.node_key:10} {command}{cycles}")  # noqa: T201
