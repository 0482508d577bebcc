import random

from medplant.imaging import VisualFeatures
from medplant.matching import (
    ENSEMBLE_MODELS,
    LOOKALIKE_RHIZOMES,
    Vote,
    confidence_score,
    ensemble_classify,
    select_best_match,
    similar_plants,
    weighted_matches,
)

BROWN_ROOT = VisualFeatures(colors=['brown', 'tan', 'earthy'], root_type='root', surface_texture='fibrous')
YELLOW_RHIZOME = VisualFeatures(colors=['yellow', 'golden', 'bright'], root_type='rhizome',
                                surface_texture='smooth')


def names(matches):
    return [plant['name'] for plant, _ in matches]


def test_filename_hint_and_brown_features_favour_ginger(plants):
    matches = weighted_matches(BROWN_ROOT, ['ginger'], plants)

    assert matches[0][0]['name'] == 'Ginger'
    assert matches[0][1] == 120
    assert matches[1] == (plants[0], 20)


def test_yellow_rhizome_favours_turmeric(plants):
    matches = weighted_matches(YELLOW_RHIZOME, [], plants)

    assert names(matches)[:2] == ['Turmeric', 'Ginger']
    assert matches[0][1] == 60
    assert matches[1][1] == 20


def test_equal_scores_keep_database_order(plants):
    matches = weighted_matches(VisualFeatures(), [], plants)
    zero_scored = [name for name, (_, score) in zip(names(matches), matches) if score == 0]
    assert zero_scored == [p['name'] for p in plants if p['family'] != 'Zingiberaceae']


def test_strong_filename_hint_wins(plants):
    matches = weighted_matches(BROWN_ROOT, ['ginger'], plants)
    votes = [Vote('Neem', 80, 'vision-model-1'), Vote('Neem', 75, 'vision-model-2')]

    assert select_best_match(votes, matches, ['ginger'])['name'] == 'Ginger'


def test_weak_filename_hint_falls_through_to_votes(plants):
    matches = [(plant, 10) for plant in plants]
    votes = [Vote('Neem', 70, 'vision-model-1')]

    assert select_best_match(votes, matches, ['amla'])['name'] == 'Neem'


def test_ensemble_consensus(plants):
    matches = weighted_matches(VisualFeatures(), [], plants)
    votes = [
        Vote('Neem', 70, 'vision-model-1'),
        Vote('Neem', 60, 'vision-model-2'),
        Vote('ginger', 90, 'botanical-classifier'),
    ]

    assert select_best_match(votes, matches, [])['name'] == 'Neem'


def test_unknown_vote_falls_back_to_top_match(plants):
    matches = weighted_matches(YELLOW_RHIZOME, [], plants)
    votes = [Vote('galangal', 80, 'botanical-classifier')]

    assert select_best_match(votes, matches, [])['name'] == 'Turmeric'


def test_nothing_to_select():
    assert select_best_match([], [], []) is None


def test_confidence_is_clamped(plants):
    ginger = plants[1]
    votes = [Vote('Ginger', 70, model) for model in ENSEMBLE_MODELS]

    assert confidence_score(ginger, BROWN_ROOT, ['ginger'], votes) == 95
    assert confidence_score(plants[2], VisualFeatures(), [], []) == 60
    assert confidence_score(plants[0], YELLOW_RHIZOME, [], votes) == 85
    assert confidence_score(None, VisualFeatures(), [], []) == 60


def test_ensemble_votes(plants):
    votes = ensemble_classify(plants, random.Random(3))

    assert [vote.model for vote in votes] == list(ENSEMBLE_MODELS)
    first_five = {plant['name'] for plant in plants[:5]}
    for vote in votes[:2]:
        assert vote.plant_name in first_five
        assert 50 <= vote.confidence <= 80
    assert votes[2].plant_name in LOOKALIKE_RHIZOMES
    assert 60 <= votes[2].confidence <= 100


def test_ensemble_votes_without_plants():
    votes = ensemble_classify([], random.Random(3))
    assert [vote.plant_name for vote in votes[:2]] == ['turmeric', 'turmeric']


def test_similar_plants(plants):
    turmeric = plants[0]
    assert [plant['name'] for plant in similar_plants(turmeric, plants)] == ['Ginger']

    tulsi = next(plant for plant in plants if plant['name'] == 'Tulsi')
    assert similar_plants(tulsi, plants) == []
