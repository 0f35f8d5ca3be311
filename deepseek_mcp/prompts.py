"""Prompt templates that steer a client towards the ask tool."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass


def create_task_instructions(problem_statement: str, system_prompt: str) -> str:
    """Instructions telling the client how to call the ask tool for a problem."""
    steps = "\n".join(
        [
            "Steps:",
            "1. Put a short, precise request derived from the problem statement in the `query` argument.",
            "2. Supply the code to analyse in one of two ways:",
            "   - list one or more files in the `file_paths` argument, or",
            "   - paste a snippet straight into the `query` argument.",
            "3. Pass the text below as the `systemPrompt` argument.",
        ]
    )
    return (
        "Call the `deepseek_ask` tool now to work on this problem.\n\n"
        f"{steps}\n\n"
        f"<system_prompt>\n{system_prompt}\n</system_prompt>\n\n"
        f"<problem_statement>\n{problem_statement}\n</problem_statement>"
    )


def _compose(role: str, lead: str, points: Sequence[str], closing: str, numbered: bool = False) -> str:
    if numbered:
        body = "\n".join(f"{n}. {point}" for n, point in enumerate(points, start=1))
    else:
        body = "\n".join(f"- {point}" for point in points)
    return f"{role}\n\n{lead}\n{body}\n\n{closing}"


@dataclass(frozen=True)
class PromptDefinition:
    """A named prompt with a description and the system prompt it recommends."""

    name: str
    description: str
    system_prompt: str

    def render(self, arguments: Mapping[str, str] | None) -> str:
        """Instructions for the given arguments; problem_statement is required."""
        problem_statement = (arguments or {}).get("problem_statement", "")
        if not problem_statement:
            raise ValueError("problem_statement argument is required")
        return create_task_instructions(problem_statement, self.system_prompt)


PROMPTS: tuple[PromptDefinition, ...] = (
    PromptDefinition(
        "code_review",
        "Review code for quality, likely defects and possible improvements",
        _compose(
            "You are a seasoned code reviewer. Examine the supplied code in depth.",
            "Pay particular attention to:",
            [
                "**Quality and conventions:** idiomatic use of the language, consistent formatting and accepted practice.",
                "**Defects:** logic mistakes, races, null dereferences and similar bugs.",
                "**Security:** injection, unsafe data handling and weak authentication or authorization, judged against the OWASP Top 10.",
                "**Performance:** wasteful algorithms, leaked memory and other bottlenecks.",
                "**Maintainability:** how clear, modular and easy to change the code is.",
            ],
            "Make every remark concrete and actionable: name the file where known, cite the line numbers, "
            "describe the problem and propose a fix.",
        ),
    ),
    PromptDefinition(
        "explain_code",
        "Explain in detail how code works, covering its algorithms and design patterns",
        _compose(
            "You are an experienced engineer who is also a patient teacher. Explain the supplied code clearly and thoroughly.",
            "Organise the explanation like this:",
            [
                "**Summary:** what the code does and why it exists.",
                "**Walkthrough:** each part in turn, with its logic, algorithms and data structures.",
                "**Concepts:** notable patterns, architectural choices and techniques it shows.",
                "**Example:** where it helps, a short illustration of how to use it.",
            ],
            "Pitch the explanation at a developer with intermediate experience.",
            numbered=True,
        ),
    ),
    PromptDefinition(
        "debug_help",
        "Help track down bugs using the code, error messages and surrounding context",
        _compose(
            "You are a skilled debugger. Study the supplied code together with the reported problem, "
            "find what causes the bug and propose a remedy.",
            "Work through these steps:",
            [
                "**Read the code:** look for faulty logic, wrong assumptions or anything else tied to the report.",
                "**Find the cause:** name the most probable origin of the failure.",
                "**Fix it:** give a corrected snippet of code.",
                "**Justify the fix:** say why the bug happened and why the change cures it.",
            ],
            "Keep the reasoning focused on evidence from the code and the report.",
            numbered=True,
        ),
    ),
    PromptDefinition(
        "refactor_suggestions",
        "Propose refactorings and other improvements to existing code",
        _compose(
            "You are a software architect who specialises in modernising and restructuring code. "
            "Study the supplied code and propose concrete improvements.",
            "Concentrate on:",
            [
                "**Structure:** better modularity, separation of concerns and organisation.",
                "**Patterns:** places where a well-known design pattern would simplify things.",
                "**Readability:** changes that make the code easier to follow and to modify.",
                "**Efficiency:** faster or leaner alternatives that keep the code clear.",
            ],
            "Back each proposal with a code example and state what it gains.",
        ),
    ),
    PromptDefinition(
        "architecture_analysis",
        "Analyse the architecture, design patterns and structural choices of a system",
        _compose(
            "You are an experienced software architect. Give a high-level analysis of how the supplied codebase is built.",
            "Cover the following:",
            [
                "**Design:** the overall architectural style, such as a monolith, microservices or MVC.",
                "**Components:** the main parts, what each is responsible for and how they talk to each other.",
                "**Data flow:** how data moves through the system.",
                "**Dependencies:** the important external dependencies and what they are used for.",
                "**Risks:** architectural weak spots and bottlenecks affecting scale, upkeep or security.",
            ],
            "Finish with a short, clear summary of the architecture.",
        ),
    ),
    PromptDefinition(
        "doc_generate",
        "Write thorough documentation for code, APIs or systems",
        _compose(
            "You are an expert technical writer. Produce clear, complete and concise documentation for the supplied code.",
            "Write it in Markdown, with these sections for every significant component or function:",
            [
                "**Purpose:** a short statement of what it does.",
                "**Parameters:** every input, its type and its meaning.",
                "**Returns:** what it gives back.",
                "**Example:** a small snippet showing it in use.",
            ],
            "Make sure the documentation is correct and easy for other developers to follow.",
        ),
    ),
    PromptDefinition(
        "test_generate",
        "Produce unit tests, integration tests or test cases for code",
        _compose(
            "You are a specialist in software testing. Write thorough unit tests for the supplied code.",
            "The tests must:",
            [
                "Use the usual testing framework of the language in question.",
                "Exercise normal paths, boundary cases and failures.",
                "Follow good testing practice, with descriptive names and precise assertions.",
                "Stay readable and easy to maintain.",
            ],
            "Give each function or method its own group of test cases.",
        ),
    ),
    PromptDefinition(
        "security_analysis",
        "Inspect code for security weaknesses and secure-coding practice",
        _compose(
            "You are a security specialist experienced in auditing source code. "
            "Inspect the supplied code for vulnerabilities and risky constructs.",
            "Look especially for, among others:",
            [
                "Injection of SQL, shell commands and the like",
                "Cross-site scripting",
                "Unsafe deserialization",
                "Flawed authentication or access control",
                "Insecure configuration",
                "Leaks of sensitive data",
            ],
            "For every finding, describe the weakness and what an attacker could do with it, give the file and "
            "line where it occurs, and explain how to fix it, with corrected code where you can.",
        ),
    ),
)


def find_prompt(name: str) -> PromptDefinition | None:
    """The prompt with this name, or None."""
    return next((prompt for prompt in PROMPTS if prompt.name == name), None)