from typing import List, Optional

from schemas.leads import ProfileData

NOT_SPECIFIED = "not specified"


def outreach_prompt(profile: ProfileData, first_name: str, sample_style: Optional[str] = None) -> str:
    """Prompt for a personalised connection message.

    Output depends only on the arguments, so identical inputs always produce
    an identical prompt.
    """
    name = (first_name or "").strip() or "there"
    p = profile or ProfileData()
    lines = [
        "Write a short, personalized LinkedIn connection message (under 100 words).",
        "",
        "Recipient information:",
        f"- First Name: {name}",
        f"- Current Role: {p.current_role or NOT_SPECIFIED}",
        f"- Company: {p.current_company or NOT_SPECIFIED}",
        f"- Location: {p.location or NOT_SPECIFIED}",
        f"- Headline: {p.headline or NOT_SPECIFIED}",
        f"- Education: {p.education or NOT_SPECIFIED}",
        "",
        "Requirements:",
        f'- Start with "Hi {name},"',
        "- Be friendly but professional",
        "- Reference their role or company naturally (if available)",
        "- Keep it genuine, not salesy",
        "- End with a clear reason to connect",
        '- Avoid generic phrases like "I hope this finds you well"',
        "- Do NOT include a subject line",
    ]
    style = (sample_style or "").strip()
    if style:
        lines += [
            "",
            "IMPORTANT - Match this writing style and tone:",
            "---",
            style,
            "---",
        ]
    lines += ["", "Return ONLY the message text, nothing else."]
    return "\n".join(lines)


REWRITE_EXCERPT = 3000
REPLY_EXCERPT = 2000


def _voice(lines: List[str], voice_style: Optional[str], heading: str) -> None:
    style = (voice_style or "").strip()
    if style:
        lines += ["", heading, "---", style, "---"]


def topic_post_prompt(topic: str, voice_style: Optional[str] = None) -> str:
    lines = [
        "Write an engaging LinkedIn post about the following topic:",
        "",
        f"Topic: {topic.strip()}",
        "",
        "Requirements:",
        "- Start with a compelling hook that stops the scroll",
        "- Share a unique perspective or insight on this topic",
        "- Use storytelling if appropriate",
        "- Keep it under 1300 characters (optimal for LinkedIn engagement)",
        "- Include line breaks for easy readability",
        "- End with a question or call to action to encourage engagement",
        "- Avoid corporate jargon and buzzwords",
        "- Be authentic and use a conversational tone",
    ]
    _voice(lines, voice_style, "IMPORTANT - Match this writing style and tone:")
    lines += ["", "Return ONLY the post text, nothing else."]
    return "\n".join(lines)


def rewrite_prompt(original: str, voice_style: Optional[str] = None, angle: Optional[str] = None) -> str:
    """Prompt that rewrites a post in the user's voice; long originals are cut."""
    lines = [
        "Rewrite the following viral LinkedIn post in a unique, authentic voice.",
        "Capture the same essence and insights but present them in a fresh, original way.",
        "",
        "Original Post:",
        "---",
        (original or "")[:REWRITE_EXCERPT],
        "---",
        "",
        "Requirements:",
        "- Keep a similar length and structure to the original",
        "- Maintain the key insights and takeaways",
        "- Include a hook in the first line",
        "- End with a call to action or thought-provoking question",
        "- Add appropriate line breaks for readability",
        "- Do NOT copy phrases directly from the original",
    ]
    _voice(lines, voice_style, "IMPORTANT - Match this writing style and tone:")
    angle = (angle or "").strip()
    if angle:
        lines += ["", f"Focus the rewrite on this specific angle: {angle}"]
    lines += ["", "Return ONLY the post text, nothing else."]
    return "\n".join(lines)


def reply_prompt(post_content: str, voice_style: Optional[str] = None) -> str:
    lines = [
        "Write a thoughtful LinkedIn comment reply to this post:",
        "",
        "Post:",
        "---",
        (post_content or "")[:REPLY_EXCERPT],
        "---",
        "",
        "Requirements:",
        "- Be genuine and add value to the conversation",
        "- Keep it concise (2-3 sentences max)",
        "- Show that you've actually read and understood the post",
        "- Add a unique perspective or ask a thoughtful question",
        '- Avoid generic comments like "Great post!" or "So true!"',
        "- Don't be salesy or self-promotional",
    ]
    _voice(lines, voice_style, "Match this writing style:")
    lines += ["", "Return ONLY the comment text, nothing else."]
    return "\n".join(lines)
