"""
Template-based script writer.

Stands in for an LLM: every tone maps to a fixed template that is filled with
the prompt, trimmed to a word budget, and analysed for title, structure and
spoken duration.
"""

import math
import re
from datetime import datetime, timezone
from typing import List, Optional

WORDS_PER_MINUTE = 160
DEMO_MAX_WORDS = 100

TEMPLATES = {
    "marketing": {"structure": ["hook", "problem", "solution", "benefits", "cta"], "max_words": 150},
    "educational": {"structure": ["introduction", "explanation", "examples", "summary"], "max_words": 300},
    "entertainment": {"structure": ["opening", "buildup", "climax", "resolution"], "max_words": 200},
}

TONE_SCRIPTS = {
    "professional": (
        "Welcome to our innovative solution for {prompt}. In today's competitive market, businesses "
        "need reliable tools that deliver results. Our platform addresses these challenges with "
        "cutting-edge technology and user-friendly design. Join thousands of satisfied customers who "
        "have transformed their operations. Experience the difference today and unlock your potential "
        "for success."
    ),
    "casual": (
        "Hey there! Looking for something amazing related to {prompt}? You've come to the right place! "
        "We've built something really cool that's going to blow your mind. It's super easy to use and "
        "gets results fast. Don't just take our word for it - try it yourself and see the magic happen!"
    ),
    "humorous": (
        "So, you want to know about {prompt}? Well, buckle up buttercup, because we're about to take you "
        "on a wild ride! Imagine if efficiency and fun had a baby - that's our solution! It's so good, "
        "even your coffee will taste better after using it. Ready to join the party?"
    ),
}

SUGGESTIONS = [
    "Introduce our revolutionary new product that solves everyday problems",
    "Showcase customer testimonials and success stories",
    "Highlight key features and competitive advantages",
    "Explain how our solution saves time and money",
    "Create engaging content that converts viewers to customers",
]


def write_script(prompt: str, tone: str, max_words: int) -> str:
    """fill the tone template, unknown tones read as professional"""
    script = TONE_SCRIPTS.get(tone, TONE_SCRIPTS["professional"]).format(prompt=prompt)
    words = script.split(" ")
    if len(words) > max_words:
        script = " ".join(words[:max_words]) + "..."
    return script


def generate_title(prompt: str) -> str:
    key_words = [word for word in prompt.split(" ") if len(word) > 3][:3]
    return " ".join(word[:1].upper() + word[1:].lower() for word in key_words) + " Script"


def count_words(text: str) -> int:
    return len(text.split())


def estimate_duration(text: str) -> int:
    """spoken duration in seconds"""
    return math.ceil(count_words(text) / WORDS_PER_MINUTE * 60)


def parse_structure(content: str) -> dict:
    sentences = [s for s in re.split(r"[.!?]+", content) if s.strip()]
    return {
        "introduction": sentences[0] if sentences else "",
        "body": ". ".join(sentences[1:-1]),
        "conclusion": sentences[-1] if sentences else "",
    }


def generate_script(
    prompt: str,
    tone: str = "professional",
    target_audience: str = "general",
    category: str = "marketing",
    max_words: int = 200
) -> dict:
    content = write_script(prompt, tone, max_words)
    return {
        "title": generate_title(prompt),
        "content": content,
        "structure": parse_structure(content),
        "word_count": count_words(content),
        "estimated_duration": estimate_duration(content),
        "tone": tone,
        "target_audience": target_audience,
        "category": category,
        "metadata": {
            "prompt": prompt,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "model": "fallback",
        },
    }


def generate_demo_script(prompt: str, tone: str = "professional", target_audience: Optional[str] = None) -> dict:
    script = generate_script(prompt, tone=tone, target_audience=target_audience or "general", max_words=DEMO_MAX_WORDS)
    script["is_demo"] = True
    script["limitations"] = [
        "Limited to 100 words",
        "Basic structure only",
        "Standard templates",
    ]
    return script


def script_templates() -> List[dict]:
    """ready-made scripts built from the first suggestions, with their section layout"""
    layout = (
        ("marketing-1", "Product Launch Script", "marketing", SUGGESTIONS[0]),
        ("social-1", "Social Media Hook", "entertainment", SUGGESTIONS[1]),
        ("education-1", "Tutorial Script", "educational", SUGGESTIONS[2]),
    )
    return [
        {
            "id": template_id,
            "name": name,
            "category": category,
            "content": content,
            "structure": list(TEMPLATES[category]["structure"]),
            "max_words": TEMPLATES[category]["max_words"],
        }
        for template_id, name, category, content in layout
    ]


def script_suggestions() -> List[str]:
    return list(SUGGESTIONS)


def build_script_result(job) -> dict:
    """result payload of a finished script job"""
    options = job.options or {}
    category = options.get("category", "marketing")
    max_words = options.get("max_words") or TEMPLATES.get(category, {}).get("max_words", 200)
    return generate_script(
        job.prompt,
        tone=options.get("tone", "professional"),
        target_audience=options.get("target_audience", "general"),
        category=category,
        max_words=max_words,
    )
