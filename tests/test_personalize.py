import re

from autoleadgen.personalize import CONTACT_PLACEHOLDERS, personalize, placeholder_values
from schemas.leads import Contact, ProfileData


def test_all_placeholders_replaced():
    c = Contact(first_name="Jane", last_name="Doe", profile_url="linkedin.com/in/jane", company="Acme", title="CTO")
    template = "Hi {firstName} {lastName} ({fullName}), {title} at {company}"
    assert personalize(template, c) == "Hi Jane Doe (Jane Doe), CTO at Acme"


def test_missing_values_become_empty_and_no_placeholder_left():
    c = Contact(first_name="Jane", profile_url="linkedin.com/in/jane")
    out = personalize(" ".join(CONTACT_PLACEHOLDERS), c)
    assert not re.search(r"\{[a-zA-Z]+\}", out)
    assert out == "Jane  Jane  "


def test_text_around_placeholders_is_kept_verbatim():
    c = Contact(first_name="Jane", profile_url="linkedin.com/in/jane")
    template = "  Hi {firstName},\n\n  see you   soon  "
    assert personalize(template, c) == "  Hi Jane,\n\n  see you   soon  "
    assert personalize("Hi {firstName}, from {company} team", c) == "Hi Jane, from  team"


def test_unknown_braces_are_left_alone():
    c = Contact(first_name="Jane", profile_url="linkedin.com/in/jane")
    assert personalize("Hi {firstName} {nickname}", c) == "Hi Jane {nickname}"


def test_profile_fills_company_and_title_when_contact_has_none():
    c = Contact(first_name="Sam", profile_url="linkedin.com/in/sam")
    profile = ProfileData(current_company="Initech", current_role="VP Sales", headline="Sales leader")
    values = placeholder_values(c, profile)
    assert values["{company}"] == "Initech"
    assert values["{title}"] == "VP Sales"
    assert personalize("{headline} / {currentRole}", c, profile) == "Sales leader / VP Sales"
