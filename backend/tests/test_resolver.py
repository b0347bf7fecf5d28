from backend.dinver_ai.resolver import (
    AMBIGUOUS,
    MATCHED,
    NOT_FOUND,
    extract_name_hint,
    resolve_restaurant,
    score_candidates,
)
from backend.dinver_ai.types import Partner

PARTNERS = [
    Partner(id="r1", name="Marabu Caffe", slug="marabu-caffe"),
    Partner(id="r2", name="Pizzeria Napoli", slug="pizzeria-napoli"),
    Partner(id="r3", name="Bistro Vinodol", slug="bistro-vinodol"),
]


class TestResolveRestaurant:
    def test_name_inside_a_question(self):
        resolution = resolve_restaurant("Does Marabu Caffe have parking?", PARTNERS)
        assert resolution.status == MATCHED
        assert resolution.restaurant_id == "r1"
        assert resolution.via_preference is False

    def test_diacritics_and_case_are_ignored(self):
        partners = [*PARTNERS, Partner(id="r4", name="Kod Žabe", slug="kod-zabe")]
        resolution = resolve_restaurant("radi li KOD ZABE danas", partners)
        assert resolution.restaurant_id == "r4"

    def test_resolution_is_deterministic(self):
        first = resolve_restaurant("napoli pizza", PARTNERS)
        second = resolve_restaurant("napoli pizza", PARTNERS)
        assert first == second

    def test_below_floor_is_not_found(self):
        resolution = resolve_restaurant("where can I get pizza", PARTNERS)
        assert resolution.status == NOT_FOUND
        assert resolution.match is None
        assert len(resolution.candidates) == 3

    def test_close_scores_are_ambiguous(self):
        partners = [*PARTNERS, Partner(id="r5", name="Marabu Bistro", slug="marabu-bistro")]
        resolution = resolve_restaurant("is marabu open", partners)
        assert resolution.status == AMBIGUOUS
        assert {p.id for p in resolution.candidates[:2]} == {"r1", "r5"}

    def test_preference_used_only_when_unresolved(self):
        fallback = resolve_restaurant("do they have parking", PARTNERS, prefer_id="r2")
        assert fallback.status == MATCHED
        assert fallback.restaurant_id == "r2"
        assert fallback.via_preference is True

        named = resolve_restaurant("is Bistro Vinodol open", PARTNERS, prefer_id="r2")
        assert named.restaurant_id == "r3"
        assert named.via_preference is False

    def test_preference_outside_the_list_is_still_honoured(self):
        resolution = resolve_restaurant("and the menu?", PARTNERS, prefer_id="gone")
        assert resolution.restaurant_id == "gone"

    def test_empty_partner_list(self):
        resolution = resolve_restaurant("Marabu", [])
        assert resolution.status == NOT_FOUND
        assert resolution.candidates == []


def test_score_candidates_orders_highest_first():
    ranked = score_candidates("pizzeria napoli", PARTNERS)
    assert ranked[0].partner.id == "r2"
    assert ranked[0].score > ranked[1].score


def test_extract_name_hint():
    assert extract_name_hint("Radi li restoran Stari Fijaker danas?") == "Stari Fijaker danas"
    assert extract_name_hint('Is "Zlatni Lav" open?') == "Zlatni Lav"
    assert extract_name_hint("is it open") is None
