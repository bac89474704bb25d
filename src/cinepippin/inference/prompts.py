"""Prompt templates for the writer, judge and quality-gate calls."""

WRITER_SYSTEM = (
    'You are a professional comedy writer for "Cinema Pippin", an adults-only party game '
    "played over film clips. You write absurd, clever, surprising punchlines that land "
    "perfectly in context while respecting a creative constraint for each one."
)

JUDGE_SYSTEM = (
    'You are an expert comedy judge for "Cinema Pippin", an adults-only party game. '
    "You rank punchlines by comedic impact, surprise, absurdity and contextual fit, "
    "and you always pick clear winners."
)

CRITIC_SYSTEM = (
    'You are an expert film critic and comedy analyst for "Cinema Pippin". '
    "You evaluate scenes objectively for humour, narrative coherence, surprise and "
    "professional screenwriting standards."
)

GENERATE_TEMPERATURE = 0.95
JUDGE_TEMPERATURE = 0.3

QUALITY_QUESTIONS: tuple[str, ...] = (
    "Is scene 1 funny?",
    "Is scene 2 funny?",
    "Is scene 3 funny?",
    "Is scene 1 coherent?",
    "Is scene 2 coherent?",
    "Is scene 3 coherent?",
    "Do these three scenes tell a coherent story together?",
    "Would these three scenes each make a spectator laugh out loud?",
    "Are these scenes unexpected in a funny or ironic way?",
    "Do these three scenes all embody best screenwriting practices?",
)

_UNIT = {
    "word": ("one-word replacement", "a SINGLE word with no spaces and no punctuation"),
    "phrase": ("phrase replacement", "a phrase or short sentence of the requested length"),
}


def _numbered(items) -> str:
    return "\n".join(f"{n}. {item}" for n, item in enumerate(items, start=1))


def generate_prompt(constraints: list[str], scene_text: str, mode: str) -> str:
    unit, shape = _UNIT[mode]
    count = len(constraints)
    return f"""Write {count} hilarious {unit}s for the blank in this film scene.

Rules:
- Answer with a JSON array of exactly {count} couplets: [constraint, answer].
- Couplet N uses constraint N below. Copy each constraint name exactly; never reorder or invent constraints.
- Each answer satisfies only its own constraint and is {shape}.
- The punctuation around the blank is already in the scene; only provide the replacement.
- Capitalize the answer when it starts a sentence or is a proper noun; otherwise use lowercase.

Constraints, in order:
{_numbered(constraints)}

Film scene with the blank:
{scene_text}

Example format:
[["<constraint 1>", "<answer 1>"], ["<constraint 2>", "<answer 2>"]]

Respond with the JSON array only."""


def judge_prompt(versions: list[str]) -> str:
    count = len(versions)
    blocks = "\n\n---\n\n".join(f"VERSION {n}:\n{v}" for n, v in enumerate(versions, start=1))
    return f"""Judge these {count} versions of the same film scene. Each fills the blank differently.

Rank the three funniest versions: biggest laugh, best surprise, cleverest fit.

{blocks}

Answer with exactly 3 numbers between 1 and {count}, separated by spaces, funniest first.
Example: "3 1 5". No other text."""


def quality_prompt(scenes: list[str]) -> str:
    questions = [f"{n}. {q}" for n, q in enumerate(QUALITY_QUESTIONS, start=1)]
    scene_blocks = "\n\n".join(f"SCENE {n}:\n{s}" for n, s in enumerate(scenes, start=1))
    return f"""Evaluate this three-scene sequence from a film and answer {len(questions)} yes/no questions.

{scene_blocks}

Questions:
{chr(10).join(questions)}

Respond with ONLY a JSON array of {len(questions)} couplets [question, true|false], copying each
question exactly and using the booleans true or false (not strings)."""
