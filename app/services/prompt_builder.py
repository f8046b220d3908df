"""Prompt construction for game code generation."""

SYSTEM_PROMPT = (
    "You are a senior game developer. Reply with the source code of the "
    "requested game only."
)

_REQUIREMENTS = (
    "Complete, runnable code",
    "Modern best practices",
    "Clean architecture",
    "Comments explaining key parts",
    "Error handling",
)


def build_prompt(description: str, platform: str, game_type: str) -> str:
    """Return the user prompt asking for one complete *platform* game."""
    requirements = "\n".join(f"- {item}" for item in _REQUIREMENTS)
    return (
        f"Generate a complete {platform} {game_type} game based on this "
        f"description: {description}.\n"
        f"\n"
        f"Requirements:\n"
        f"{requirements}\n"
        f"\n"
        f"Platform: {platform}\n"
        f"Game Type: {game_type}"
    )


def build_messages(description: str, platform: str, game_type: str) -> list[dict]:
    return [{"role": "user", "content": build_prompt(description, platform, game_type)}]
