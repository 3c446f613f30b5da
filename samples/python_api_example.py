"""End-to-end example that exercises the promptcast Python API against the live API."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from rich.console import Console

try:
    from promptcast import PromptParser, array, number, object_, string
except ModuleNotFoundError as error:  # pragma: no cover - documentation helper
    if "promptcast" not in (error.name or ""):
        raise
    project_root = Path(__file__).resolve().parents[1]
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))
    from promptcast import PromptParser, array, number, object_, string


async def _run(console: Console) -> None:
    parser = PromptParser()

    liked = await parser.as_bool(
        "Did this reviewer like the business? Best bang for your buck, would come again.",
    )
    console.print(f"[bold]bool[/bold]: {liked}")

    genre = await parser.categorize(
        "I prefer watching Science Fiction movies",
        ["Science Fiction", "Romantic Comedy", "Action Adventure"],
    )
    console.print(f"[bold]categorize[/bold]: {genre}")

    bands = await parser.as_list(
        "I enjoy listening to AC/DC, Guns N' Roses, Led Zeppelin, and Pink Floyd",
        ["AC/DC", "Guns N' Roses", "Led Zeppelin", "Pink Floyd"],
        1,
        3,
    )
    console.print(f"[bold]list[/bold]: {bands}")

    total = await parser.as_type("what is 2+2", number())
    person = await parser.as_type(
        "hey i'm jose and i'm 42 years old",
        object_({"name": string(), "age": number()}),
    )
    colors = await parser.as_type(
        "my favorite colors are red and green",
        array(string(), description="favorite colors"),
    )
    console.print(f"[bold]as_type[/bold]: {total!r} {person!r} {colors!r}")

    answer = await parser.as_string("What is the capital of France?")
    console.print(f"[bold]string[/bold]: {answer}")


def main() -> None:
    console = Console()
    asyncio.run(_run(console))


if __name__ == "__main__":
    main()
