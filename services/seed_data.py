from __future__ import annotations

from typing import List

from models.meal import Meal

# Startretter for nye husstander og tom lokal lagring
DEFAULT_MEALS: List[Meal] = [
    Meal(
        id="seed-curry-laks",
        title="Superrask rød curry med laks",
        ingredients="\n".join(
            [
                "400 g laksefilet i terninger",
                "1 rød paprika i strimler",
                "1 bunt vårløk i skiver",
                "100 g sukkererter i staver",
                "2 ss rød currypaste",
                "1 boks kokosmelk (4 dl)",
                "1 terning fiskebuljong",
                "1 ss olje til steking",
                "Limebåter og frisk koriander til servering",
                "Kokt ris eller nudler som tilbehør",
            ]
        ),
        image_url="https://www.godfisk.no/globalassets/3iuka/godfisk/laks/rod-curry-laks.jpg",
        steps="\n".join(
            [
                "Skjær laksen i terninger.",
                "Strimle vårløk og skjær paprika og sukkererter i staver.",
                "Varm olje i en gryte og fres rød currypaste kort.",
                "Tilsett kokosmelk og fiskebuljong, kok opp.",
                "Ha i fisk og grønnsaker og la trekke til fisken er ferdig (ca. 5 min).",
                "Server med ris eller nudler, lime og koriander.",
            ]
        ),
    ),
    Meal(
        id="seed-pannekaker",
        title="Pannekaker",
        ingredients="\n".join(
            [
                "3 dl hvetemel",
                "0,5 ts salt",
                "5 dl melk",
                "4 egg",
                "1 ss smør eller margarin til røren",
            ]
        ),
        image_url="https://images.matprat.no/mvgzxlprh3-normal/710/pannekakerøre.jpg.png",
        steps="\n".join(
            [
                "Bland mel og salt i en stor bolle.",
                "Visp inn halvparten av melken til en klumpfri røre, rør inn resten av melken.",
                "Visp inn eggene og la røren svelle i ca. 30 minutter.",
                "Smelt smør i en varm stekepanne og stek tynne pannekaker, snu når oversiden har satt seg.",
                "Legg pannekakene i et fat med lokk for å holde dem varme til servering.",
            ]
        ),
    ),
]


def default_meals() -> List[Meal]:
    return [meal.model_copy() for meal in DEFAULT_MEALS]
