"""
Arena OSC address namespace.

Inbound patterns carry integer path segments only. Wildcard (*) segments
appear only in outbound '?' queries.
"""

import re

ROOT = '/composition'

# Layer scalars
LAYER_POSITION = re.compile(r'^/composition/layers/(\d+)/position$')
LAYER_DIRECTION = re.compile(r'^/composition/layers/(\d+)/direction$')
LAYER_MASTER = re.compile(r'^/composition/layers/(\d+)/master$')
LAYER_OPACITY = re.compile(r'^/composition/layers/(\d+)/video/opacity$')
LAYER_VOLUME = re.compile(r'^/composition/layers/(\d+)/audio/volume$')
LAYER_BYPASSED = re.compile(r'^/composition/layers/(\d+)/bypassed$')

# Clip scalars
CLIP_POSITION = re.compile(r'^/composition/layers/(\d+)/clips/(\d+)/transport/position$')
CLIP_DURATION = re.compile(r'^/composition/layers/(\d+)/clips/(\d+)/transport/position/behaviour/duration$')
CLIP_SPEED = re.compile(r'^/composition/layers/(\d+)/clips/(\d+)/transport/position/behaviour/speed$')
CLIP_CONNECTED = re.compile(r'^/composition/layers/(\d+)/clips/(\d+)/connected$')
CLIP_CONNECT = re.compile(r'^/composition/layers/(\d+)/clips/(\d+)/connect$')
CLIP_NAME = re.compile(r'^/composition/layers/(\d+)/clips/(\d+)/name$')

# Column scalars
COLUMN_CONNECTED = re.compile(r'^/composition/columns/(\d+)/connected$')
COLUMN_NAME = re.compile(r'^/composition/columns/(\d+)/name$')

# Composition scalars
COMPOSITION_MASTER = '/composition/master'
COMPOSITION_OPACITY = '/composition/video/opacity'
COMPOSITION_VOLUME = '/composition/audio/volume'
COMPOSITION_TEMPO = '/composition/tempocontroller/tempo'

# Wildcard queries
QUERY_COLUMNS_CONNECTED = '/composition/columns/*/connected'
QUERY_COLUMNS_NAME = '/composition/columns/*/name'
QUERY_CLIPS_NAME = '/composition/layers/*/clips/*/name'
QUERY_CLIPS_DURATION = '/composition/layers/*/clips/*/transport/position/behaviour/duration'
QUERY_LAYERS_DIRECTION = '/composition/layers/*/direction'

# Argument Arena answers with the current value
QUERY_ARG = '?'

# Default name Arena reports for columns that were never renamed
DEFAULT_COLUMN_NAME = 'Column #'


def layer_address(layer: int, param: str) -> str:
    return f'/composition/layers/{layer}/{param}'


def clip_address(layer: int, column: int, param: str) -> str:
    return f'/composition/layers/{layer}/clips/{column}/{param}'


def column_address(column: int, param: str) -> str:
    return f'/composition/columns/{column}/{param}'


def clip_position_address(layer: int, column: int) -> str:
    return clip_address(layer, column, 'transport/position')


def clip_duration_address(layer: int, column: int) -> str:
    return clip_address(layer, column, 'transport/position/behaviour/duration')


def clip_speed_address(layer: int, column: int) -> str:
    return clip_address(layer, column, 'transport/position/behaviour/speed')


def clip_name_address(layer: int, column: int) -> str:
    return clip_address(layer, column, 'name')
