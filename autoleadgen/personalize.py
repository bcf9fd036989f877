"""Template-literal placeholder substitution for outbound messages.

Placeholders are matched literally (no format-spec parsing), so any text a
user writes in braces that is not a known placeholder is left as is. Missing
values substitute as the empty string; the rest of the template, whitespace
included, is returned exactly as written.
"""

from typing import Dict, Optional

from schemas.leads import ProfileData

CONTACT_PLACEHOLDERS = ("{firstName}", "{lastName}", "{fullName}", "{company}", "{title}")
PROFILE_PLACEHOLDERS = (
    "{headline}",
    "{location}",
    "{about}",
    "{currentCompany}",
    "{currentRole}",
    "{education}",
)


def placeholder_values(person, profile: Optional[ProfileData] = None) -> Dict[str, str]:
    """Values for every known placeholder from a Lead/Contact-like object."""
    first = (getattr(person, "first_name", "") or "").strip()
    last = (getattr(person, "last_name", "") or "").strip()
    company = getattr(person, "company", None) or (profile.current_company if profile else None)
    title = getattr(person, "title", None) or (profile.current_role if profile else None)
    values = {
        "{firstName}": first,
        "{lastName}": last,
        "{fullName}": f"{first} {last}".strip(),
        "{company}": company or "",
        "{title}": title or "",
    }
    p = profile or ProfileData()
    values.update({
        "{headline}": p.headline or "",
        "{location}": p.location or "",
        "{about}": p.about or "",
        "{currentCompany}": p.current_company or "",
        "{currentRole}": p.current_role or "",
        "{education}": p.education or "",
    })
    return values


def substitute(template: str, values: Dict[str, str]) -> str:
    out = template or ""
    for placeholder, value in values.items():
        out = out.replace(placeholder, value or "")
    return out


def personalize(template: str, person, profile: Optional[ProfileData] = None) -> str:
    return substitute(template, placeholder_values(person, profile))
