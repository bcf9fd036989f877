import pytest

from autoleadgen import page_scripts as js
from autoleadgen.config import EngagementConfig
from autoleadgen.engagement import ConnectionResult, ConnectionRunner, EngagementScraper, send_connection_request
from autoleadgen.errors import ElementNotFoundError
from autoleadgen.icp import apply_icp, matches_icp, parse_keywords
from autoleadgen.polling import PollPolicy
from schemas.engagement import ConnectionStatus, EngagementPost, EngagementType, ICPFilter, PostEngager

FAST = PollPolicy(timeout_s=0, interval_s=0, settle_s=0)


def _cfg(**kw):
    values = dict(scroll_wait_s=0, modal_settle_s=0, page_load=FAST, min_delay_s=0, max_delay_s=0,
                  step_wait_s=0, tick_s=0, liker_stall_attempts=3, commenter_stall_attempts=2)
    values.update(kw)
    return EngagementConfig(**values)


def _engager(headline, degree=None, name="Pat Lee"):
    return PostEngager(name=name, headline=headline, profile_url="https://linkedin.com/in/pat",
                       engagement_type=EngagementType.LIKE, connection_degree=degree)


def _reactor(i):
    return {"name": f"Person {i}", "headline": f"Role {i}", "profileURL": f"https://www.linkedin.com/in/p{i}",
            "connectionDegree": "2nd"}


def test_exclusion_wins_over_inclusion():
    icp = ICPFilter(include_keywords=["founder"], exclude_keywords=["recruiter"])
    assert not matches_icp(_engager("Founder & Recruiter"), icp)
    assert matches_icp(_engager("Co-FOUNDER at Acme"), icp)
    assert not matches_icp(_engager("Engineer"), icp)


def test_empty_include_accepts_unless_excluded():
    icp = ICPFilter(exclude_keywords=["student"])
    assert matches_icp(_engager("Head of Growth"), icp)
    assert matches_icp(_engager(None), icp)
    assert not matches_icp(_engager("PhD Student"), icp)


def test_min_connection_degree():
    icp = ICPFilter(min_connection_degree=2)
    assert not matches_icp(_engager("x", "1st"), icp)
    assert matches_icp(_engager("x", "2nd"), icp)
    assert matches_icp(_engager("x", "3rd+"), icp)
    assert matches_icp(_engager("x", None), icp)


def test_apply_icp_marks_and_filters():
    people = [_engager("CTO"), _engager("Recruiter")]
    assert apply_icp(people, ICPFilter()) == people
    assert [p.matches_icp for p in people] == [None, None]

    kept = apply_icp(people, ICPFilter(exclude_keywords=parse_keywords(" recruiter , ,")))
    assert kept == [people[0]]
    assert [p.matches_icp for p in people] == [True, False]


def test_engager_to_lead_splits_name():
    lead = _engager("VP Sales", name="Mary Ann Smith").to_lead("https://linkedin.com/posts/1")
    assert (lead.first_name, lead.last_name) == ("Mary", "Ann Smith")
    assert lead.title == "VP Sales"
    assert lead.tags == ["like"]
    assert lead.source == "https://linkedin.com/posts/1"


@pytest.mark.asyncio
async def test_likers_stop_at_max(make_driver):
    driver = make_driver({
        js.OPEN_REACTIONS: "clicked",
        js.REACTORS: make_driver.steps([_reactor(i) for i in range(3)], [_reactor(i) for i in range(6)]),
        js.CLOSE_MODAL: "closed",
    })
    likers = await EngagementScraper(driver, _cfg()).scrape_likers(max_count=5)
    assert [p.name for p in likers] == [f"Person {i}" for i in range(5)]
    assert all(p.engagement_type == EngagementType.LIKE for p in likers)
    assert driver.count(js.CLOSE_MODAL) == 1


@pytest.mark.asyncio
async def test_likers_stop_on_stall(make_driver):
    driver = make_driver({
        js.OPEN_REACTIONS: "clicked",
        js.REACTORS: [_reactor(0), _reactor(1)],
    })
    likers = await EngagementScraper(driver, _cfg(liker_stall_attempts=3)).scrape_likers()
    assert len(likers) == 2
    # one growing read, then three without growth
    assert driver.count(js.REACTORS) == 4


@pytest.mark.asyncio
async def test_engagers_survive_a_missing_reactions_modal(make_driver):
    comment = dict(_reactor(9), commentText="Great post")
    driver = make_driver({
        js.OPEN_REACTIONS: "not_found",
        js.EXPAND_COMMENTS: make_driver.steps("clicked", "clicked", "not_found"),
        js.COMMENTERS: [comment],
    })
    post = EngagementPost(source_url="https://www.linkedin.com/posts/abc")
    result = await EngagementScraper(driver, _cfg()).scrape_engagers(post, ICPFilter(include_keywords=["role 9"]))

    assert driver.loaded == ["https://www.linkedin.com/posts/abc"]
    assert "like" in result.errors
    assert len(result.engagers) == 1
    assert result.engagers[0].comment_text == "Great post"
    assert result.matching == result.engagers
    assert driver.count(js.EXPAND_COMMENTS) == 3
    assert result.status_text == "Found 1 engagers, 1 match ICP"


@pytest.mark.asyncio
async def test_connection_request_with_note(make_driver):
    driver = make_driver({js.CLICK_CONNECT: "clicked", js.ADD_NOTE: "add_note_clicked", js.SEND_CONNECTION: "sent"})
    res = await send_connection_request(driver, "https://linkedin.com/in/pat", "Hi Pat", _cfg())
    assert res == ConnectionResult.SENT
    assert "Hi Pat" in driver.typed_notes[0]


@pytest.mark.asyncio
async def test_connection_request_missing_button(make_driver):
    driver = make_driver({js.CLICK_CONNECT: "not_found"})
    with pytest.raises(ElementNotFoundError):
        await send_connection_request(driver, "https://linkedin.com/in/pat", None, _cfg())


@pytest.mark.asyncio
async def test_connection_runner_maps_results(make_driver):
    def connect(driver):
        url = driver.current_url
        if url.endswith("/a"):
            return "clicked"
        if url.endswith("/b"):
            return "already_connected"
        if url.endswith("/c"):
            return "pending"
        return "not_found"

    driver = make_driver({js.CLICK_CONNECT: connect, js.ADD_NOTE: "add_note_clicked", js.SEND_CONNECTION: "sent"})
    people = [
        PostEngager(name=f"User {s.upper()}", profile_url=f"https://linkedin.com/in/{s}",
                    engagement_type=EngagementType.COMMENT)
        for s in "abcd"
    ]
    summary = await ConnectionRunner(driver, _cfg()).run(people, note="Hi {firstName}")

    assert [p.connection_status for p in people] == [
        ConnectionStatus.PENDING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.PENDING,
        ConnectionStatus.FAILED,
    ]
    assert people[3].error_message == "Element not found: Connect button"
    assert summary.status_text == "Connected: 1, Failed: 1"
    assert "Hi User" in driver.typed_notes[0]


@pytest.mark.asyncio
async def test_connection_runner_cancel(make_driver):
    holder = {}

    def connect_and_cancel(driver):
        holder["runner"].cancel()
        return "already_connected"

    driver = make_driver({js.CLICK_CONNECT: connect_and_cancel})
    runner = ConnectionRunner(driver, _cfg())
    holder["runner"] = runner
    people = [PostEngager(profile_url=f"https://linkedin.com/in/{s}", engagement_type=EngagementType.LIKE) for s in "ab"]
    summary = await runner.run(people)
    assert summary.cancelled
    assert people[1].connection_status == ConnectionStatus.NOT_CONNECTED
