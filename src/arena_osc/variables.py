"""
Variable definitions published for the presentation layer.

Variables are per-layer, not per-clip: when a new clip triggers on a layer,
the same variables update to the new clip.
"""

from typing import Dict, Iterable, List

# Layers that always have variables defined, discovered or not
OSC_DEFAULT_LAYERS = 10

ACTIVE_COLUMN = 'osc_active_column'
ACTIVE_COLUMN_NAME = 'osc_active_column_name'

LAYER_VARIABLES = (
    ('elapsed', 'Elapsed Time'),
    ('duration', 'Duration'),
    ('remaining', 'Remaining Time'),
    ('remaining_seconds', 'Remaining (seconds)'),
    ('progress', 'Progress (%)'),
    ('clip_name', 'Clip Name'),
)


def layer_variable_id(layer: int, suffix: str) -> str:
    return f'osc_layer_{layer}_{suffix}'


def get_layer_variables(layer: int) -> List[Dict[str, str]]:
    """Variable definitions for one layer."""
    return [
        {'variable_id': layer_variable_id(layer, suffix), 'name': f'OSC Layer {layer} / {label}'}
        for suffix, label in LAYER_VARIABLES
    ]


def get_all_variables(extra_layers: Iterable[int] = ()) -> List[Dict[str, str]]:
    """
    All variable definitions: composition variables, layers 1-10 always,
    plus any layers beyond 10 that have been discovered.
    """
    variables = [
        {'variable_id': ACTIVE_COLUMN, 'name': 'OSC / Active Column'},
        {'variable_id': ACTIVE_COLUMN_NAME, 'name': 'OSC / Active Column Name'},
    ]
    for layer in range(1, OSC_DEFAULT_LAYERS + 1):
        variables.extend(get_layer_variables(layer))
    for layer in sorted(extra_layers):
        if layer > OSC_DEFAULT_LAYERS:
            variables.extend(get_layer_variables(layer))
    return variables
