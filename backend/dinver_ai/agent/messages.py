"""Localized sentences used as reply fallbacks when text generation is unavailable."""

from __future__ import annotations

from collections.abc import Iterable

from ..language import PRIMARY_LANGUAGE

MESSAGES: dict[str, dict[str, str]] = {
    "error": {
        "hr": "Ispričavam se, dogodila se greška. Molim pokušajte ponovno.",
        "en": "Sorry, an error occurred. Please try again.",
    },
    "out_of_scope": {
        "hr": "Mogu pomoći samo s pitanjima vezanim za Dinver partner restorane. "
        "Mogu li vam pomoći pronaći restoran?",
        "en": "I can only help with questions about Dinver partner restaurants. "
        "Can I help you find a restaurant?",
    },
    "data_provenance": {
        "hr": "AI koristi Dinver bazu i podatke partner restorana "
        "(jelovnici, radno vrijeme, tipovi, pogodnosti).",
        "en": "The assistant uses the Dinver database and data provided by partner restaurants "
        "(menus, opening hours, types, perks).",
    },
    "restaurant_not_found": {
        "hr": "Nažalost, ne mogu pronaći informacije o tom restoranu.",
        "en": "Unfortunately, I cannot find information about that restaurant.",
    },
    "which_restaurant": {
        "hr": "Za koji restoran vas zanima jelovnik?",
        "en": "Which restaurant's menu are you interested in?",
    },
    "need_location": {
        "hr": "Za pretragu restorana u blizini trebam vašu lokaciju.",
        "en": "I need your location to search for nearby restaurants.",
    },
    "no_nearby": {
        "hr": "Nažalost, nema restorana u blizini koji odgovaraju vašim kriterijima.",
        "en": "Unfortunately, there are no restaurants nearby matching your criteria.",
    },
    "nearby": {
        "hr": "Restorani u blizini: {items}.",
        "en": "Restaurants nearby: {items}.",
    },
    "hours": {
        "hr": "Radno vrijeme za {name}: {schedule}.",
        "en": "Opening hours for {name}: {schedule}.",
    },
    "hours_missing": {
        "hr": "Nažalost, nemam podatke o radnom vremenu za {name}.",
        "en": "Unfortunately, I don't have opening hours for {name}.",
    },
    "menu_found": {
        "hr": "Pronašao sam: {items}.",
        "en": "I found: {items}.",
    },
    "menu_not_found_here": {
        "hr": "Nažalost, {name} nema {term} na jelovniku.",
        "en": "Unfortunately, {name} does not have {term} on the menu.",
    },
    "menu_not_found": {
        "hr": "Nažalost, nisam pronašao {term} u partner restoranima.",
        "en": "Unfortunately, I couldn't find {term} at partner restaurants.",
    },
    "menu_empty": {
        "hr": "Nažalost, nemam podatke o jelovniku za {name}.",
        "en": "Unfortunately, I don't have menu data for {name}.",
    },
    "menu_sample": {
        "hr": "Iz ponude restorana {name}: {items}.",
        "en": "From the menu at {name}: {items}.",
    },
    "most_expensive": {
        "hr": "Najskuplje u restoranu {name}: {items}.",
        "en": "The most expensive at {name}: {items}.",
    },
    "cheapest": {
        "hr": "Najjeftinije u restoranu {name}: {items}.",
        "en": "The cheapest at {name}: {items}.",
    },
    "perks": {
        "hr": "Pogodnosti restorana {name}: {items}.",
        "en": "Perks at {name}: {items}.",
    },
    "meal_types": {
        "hr": "{name} nudi: {items}.",
        "en": "{name} serves: {items}.",
    },
    "dietary_types": {
        "hr": "Prehrambene opcije u restoranu {name}: {items}.",
        "en": "Dietary options at {name}: {items}.",
    },
    "types_missing": {
        "hr": "Nažalost, nemam te podatke za {name}.",
        "en": "Unfortunately, I don't have that information for {name}.",
    },
    "reservations_enabled": {
        "hr": "{name} prima rezervacije putem Dinver profila.",
        "en": "{name} accepts reservations through its Dinver profile.",
    },
    "reservations_disabled": {
        "hr": "{name} trenutno ne prima rezervacije putem Dinvera.",
        "en": "{name} does not take reservations through Dinver at the moment.",
    },
    "contact": {
        "hr": "Kontakt podatke za {name} pronađite na Dinver profilu restorana.",
        "en": "You can find contact details for {name} on the restaurant's Dinver profile.",
    },
    "description": {
        "hr": "{description}",
        "en": "{description}",
    },
    "description_missing": {
        "hr": "Nažalost, nemam opis za {name}.",
        "en": "Unfortunately, I don't have a description for {name}.",
    },
    "virtual_tour": {
        "hr": "{name} ima virtualnu turu: {url}",
        "en": "{name} has a virtual tour: {url}",
    },
    "virtual_tour_missing": {
        "hr": "{name} nema virtualnu turu.",
        "en": "{name} does not have a virtual tour.",
    },
    "price": {
        "hr": "Cjenovna kategorija restorana {name}: {category}.",
        "en": "Price category for {name}: {category}.",
    },
    "price_missing": {
        "hr": "Nažalost, nemam cjenovnu kategoriju za {name}.",
        "en": "Unfortunately, I don't have a price category for {name}.",
    },
    "reviews": {
        "hr": "{name} ima prosječnu ocjenu {overall} iz {total} recenzija.",
        "en": "{name} has an average rating of {overall} from {total} reviews.",
    },
    "reviews_missing": {
        "hr": "{name} još nema recenzija.",
        "en": "{name} has no reviews yet.",
    },
}

PROVENANCE_SOURCES: dict[str, list[str]] = {
    "hr": [
        "Dinver baza partner restorana",
        "jelovnici i karte pića koje uređuju restorani",
        "radno vrijeme i posebni radni dani",
        "tipovi restorana, pogodnosti i recenzije korisnika",
    ],
    "en": [
        "the Dinver partner restaurant database",
        "menus and drink lists maintained by the restaurants",
        "opening hours and special working days",
        "restaurant types, perks and user reviews",
    ],
}


def message(key: str, lang: str, **values: object) -> str:
    localized = MESSAGES[key]
    template = localized.get(lang) or localized[PRIMARY_LANGUAGE]
    return template.format(**values) if values else template


def format_price(price: float | None) -> str:
    return f"{price:.2f} €" if price is not None else ""


def join_items(items: Iterable[str]) -> str:
    return ", ".join(item for item in items if item)
