import pytest

import scripts.enrich_leads as enrich_mod
from autoleadgen.leads_store import LeadStore
from autoleadgen.vendors.apollo import ApolloServerError, InsufficientCredits
from schemas.leads import EnrichmentResult, Lead, LeadsStatistics, LeadStatus


def _lead(slug, **kw):
    return Lead(first_name=slug.title(), profile_url=f"https://www.linkedin.com/in/{slug}/", **kw)


def test_add_is_unique_by_normalized_url(tmp_path):
    store = LeadStore(tmp_path / "leads.json")
    added = store.add_leads([_lead("a"), _lead("b"), Lead(profile_url="http://linkedin.com/in/a")])
    assert [lead.first_name for lead in added] == ["A", "B"]
    assert store.add_leads([_lead("a")]) == []
    assert store.contains_url("LINKEDIN.com/in/b")
    assert len(LeadStore(tmp_path / "leads.json").all()) == 2


def test_queries_tags_and_status(tmp_path):
    store = LeadStore(tmp_path / "leads.json")
    a, b = store.add_leads([_lead("a", company="Acme"), _lead("b", title="CTO")])
    assert store.add_tag(a.id, "vip")
    assert not store.add_tag(a.id, "vip")
    assert [lead.id for lead in store.by_tag("vip")] == [a.id]
    assert store.tags() == ["vip"]
    assert store.remove_tag(a.id, "vip")
    assert [lead.id for lead in store.search("acme")] == [a.id]
    assert [lead.id for lead in store.search("cto")] == [b.id]

    updated = store.set_status(b.id, LeadStatus.CONTACTED)
    assert updated.last_contacted_at is not None
    assert [lead.id for lead in store.by_status(LeadStatus.CONTACTED)] == [b.id]
    assert store.set_status("nope", LeadStatus.NEW) is None
    assert store.delete([a.id, "nope"]) == 1
    assert [lead.id for lead in LeadStore(tmp_path / "leads.json").all()] == [b.id]


def test_statistics_rates():
    store = LeadStore()
    leads = store.add_leads([_lead(s) for s in "abcde"])
    for lead, status in zip(leads, [LeadStatus.CONTACTED, LeadStatus.CONTACTED, LeadStatus.RESPONDED,
                                    LeadStatus.CONVERTED, LeadStatus.NEW]):
        store.set_status(lead.id, status)
    stats = store.statistics()
    assert (stats.total, stats.contacted, stats.responded, stats.converted) == (5, 2, 1, 1)
    assert stats.conversion_rate == pytest.approx(20.0)
    assert stats.response_rate == pytest.approx(100.0)
    assert LeadsStatistics().response_rate == 0.0


def test_csv_export_import(tmp_path):
    store = LeadStore()
    store.add_leads([_lead("a", email="a@x.com", tags=["x", "y"], notes="met at expo")])
    text = store.export_csv()
    assert text.splitlines()[0] == "FirstName,LastName,LinkedIn URL,Email,Phone,Company,Title,Location,Status,Tags,Notes"

    other = LeadStore(tmp_path / "other.json")
    imported = other.import_csv(text + "Only,Two\nBad,Status,linkedin.com/in/z,,,,,,Bogus\n")
    assert [lead.first_name for lead in imported] == ["A", "Bad"]
    assert imported[0].tags == ["x", "y"] and imported[0].email == "a@x.com"
    assert imported[0].source == "CSV Import"
    assert imported[1].status == LeadStatus.NEW


class FakeApollo:
    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls = []

    async def enrich_person(self, url, first_name=None, last_name=None):
        self.calls.append(url)
        out = self.outcomes[len(self.calls) - 1]
        if isinstance(out, Exception):
            raise out
        return out

    async def bulk_enrich(self, people):
        self.calls.append([p["linkedin_url"] for p in people])
        out = self.outcomes[len(self.calls) - 1]
        if isinstance(out, Exception):
            raise out
        return out


@pytest.mark.asyncio
async def test_backfill_leads_one_by_one(tmp_path):
    store = LeadStore(tmp_path / "leads.json")
    store.add_leads([_lead("full", email="f@x.com", phone="1"), _lead("a"), _lead("b"), _lead("c"), _lead("d")])
    client = FakeApollo([
        EnrichmentResult(found=True, email="a@x.com", company="Acme"),
        ApolloServerError(500),
        EnrichmentResult(found=False),
        InsufficientCredits(),
    ])
    stats = await enrich_mod.backfill_leads(store, client)

    assert stats == {"candidates": 4, "enriched": 1, "not_found": 1, "failed": 1, "halted": 1}
    assert "https://www.linkedin.com/in/full/" not in client.calls
    reloaded = {lead.first_name: lead for lead in LeadStore(tmp_path / "leads.json").all()}
    assert reloaded["A"].email == "a@x.com"
    assert reloaded["A"].company == "Acme"


@pytest.mark.asyncio
async def test_backfill_leads_bulk_matches_by_url():
    store = LeadStore()
    store.add_leads([_lead("a"), _lead("b")])
    client = FakeApollo([{
        "https://www.linkedin.com/in/a": EnrichmentResult(found=True, phone="+65 1"),
    }])
    stats = await enrich_mod.backfill_leads(store, client, bulk=True, limit=5)
    assert stats["enriched"] == 1 and stats["not_found"] == 1
    assert len(client.calls) == 1 and len(client.calls[0]) == 2
    assert store.all()[0].phone == "+65 1"
