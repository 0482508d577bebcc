"""
matching.py - Ensemble voting and weighted plant database matching.

Plants are plain dicts as produced by `Plant.to_dict()`.
"""

import logging
import random
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ENSEMBLE_MODELS = ('vision-model-1', 'vision-model-2', 'botanical-classifier')
LOOKALIKE_RHIZOMES = ['ginger', 'turmeric', 'galangal']


@dataclass
class Vote:
    plant_name: str
    confidence: float
    model: str


def _lower(value):
    return (value or '').lower()


def ensemble_classify(plants, rng=None):
    """
    Collect one vote per simulated model.

    The botanical classifier only separates the look-alike rhizomes; the
    general vision models vote for one of the first five database plants.
    """
    rng = rng or random.Random()
    votes = []
    for model in ENSEMBLE_MODELS:
        if model == 'botanical-classifier':
            plant_name = rng.choice(LOOKALIKE_RHIZOMES)
            confidence = rng.uniform(60, 100)
        else:
            plant_name = 'turmeric'
            if plants:
                candidate = plants[rng.randrange(min(5, len(plants)))]
                plant_name = candidate.get('name') or plant_name
            confidence = rng.uniform(50, 80)
        votes.append(Vote(plant_name, confidence, model))
    return votes


def weighted_matches(features, hints, plants):
    """Score every plant against the visual features and filename hints, best first."""
    matches = []

    for plant in plants:
        name = _lower(plant.get('name'))
        hindi_name = plant.get('hindi_name') or ''
        score = 0

        # Filename hints carry the most weight
        for hint in hints:
            if hint.lower() in name or hint.lower() in hindi_name.lower():
                score += 50

        if 'yellow' in features.colors and (
                'turmeric' in name or 'haldi' in name or 'हल्दी' in hindi_name):
            score += 25

        if 'brown' in features.colors and (
                'ginger' in name or 'adrak' in name or 'अदरक' in hindi_name):
            score += 30

        if 'ginger' in name and (features.root_type == 'root' or features.surface_texture == 'fibrous'):
            score += 20

        if 'turmeric' in name and (features.root_type == 'rhizome' or features.surface_texture == 'smooth'):
            score += 15

        if plant.get('family') == 'Zingiberaceae':
            score += 20

        matches.append((plant, score))

    # sorted() is stable, so equal scores keep database order
    return sorted(matches, key=lambda match: match[1], reverse=True)


def select_best_match(votes, matches, hints):
    """
    Pick a plant from the combined evidence.

    A strong filename match wins outright, then the ensemble consensus, then
    the highest weighted database match.
    """
    if hints and matches:
        for plant, score in matches:
            name = _lower(plant.get('name'))
            if any(hint.lower() in name for hint in hints):
                if score > 40:
                    logger.debug(f"Filename hint selected {plant.get('name')} (score {score})")
                    return plant
                break

    if votes:
        tally = {}
        for vote in votes:
            votes_for, total_confidence = tally.get(vote.plant_name, (0, 0.0))
            tally[vote.plant_name] = (votes_for + 1, total_confidence + vote.confidence)

        best_name, best_score = '', 0.0
        for plant_name, (votes_for, total_confidence) in tally.items():
            score = votes_for * total_confidence
            if score > best_score:
                best_name, best_score = plant_name, score

        if best_name:
            for plant, _ in matches:
                if best_name.lower() in _lower(plant.get('name')):
                    return plant

    return matches[0][0] if matches else None


def confidence_score(plant, features, hints, votes):
    """Combine the evidence into a 60-95 confidence percentage."""
    name = _lower((plant or {}).get('name'))
    confidence = 50

    for hint in hints:
        if hint.lower() in name:
            confidence += 30
            break

    if 'yellow' in features.colors and 'turmeric' in name:
        confidence += 20
    if 'brown' in features.colors and 'ginger' in name:
        confidence += 20

    confidence += min(15, len(votes) * 5)

    return min(95, max(60, confidence))


def similar_plants(target, plants, count=3):
    """Other plants sharing a family, therapeutic action or used part with `target`."""
    similar = []
    for plant in plants:
        if plant.get('name') == target.get('name'):
            continue
        if any(plant.get(key) and plant.get(key) == target.get(key)
               for key in ('family', 'therapeutic_actions', 'parts_used')):
            similar.append(plant)
        if len(similar) >= count:
            break
    return similar
