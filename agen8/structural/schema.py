#agen8/structural/schema.py
# Wire-level shape of an n8n workflow document. Deliberately loose: it only
# rejects documents that are not workflows at all. Missing names/types,
# bad parameters and odd connection nesting are left to the normalizer and
# the validator, which report them per node.
N8N_WORKFLOW_SCHEMA = {
    "type": "object",
    "required": ["nodes"],
    "properties": {
        "id": {"type": ["string", "number", "null"]},
        "name": {"type": ["string", "null"]},
        "active": {"type": ["boolean", "null"]},
        "settings": {"type": ["object", "null"]},
        "staticData": {"type": ["object", "null"]},
        "tags": {"type": ["array", "null"]},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": ["string", "number", "null"]
                    },
                    "name": {
                        "type": ["string", "null"]
                    },
                    "type": {
                        "type": ["string", "null"]
                    },

                    # Optional: parameters must be an object (or null) when present
                    "parameters": {
                        "type": ["object", "null"]
                    },

                    "typeVersion": {
                        "type": ["integer", "number"]
                    },

                    # n8n exports use [x, y]; some tools write {"x": .., "y": ..}
                    "position": {
                        "anyOf": [
                            {
                                "type": "array",
                                "items": {"type": "number"},
                                "minItems": 2,
                                "maxItems": 2
                            },
                            {
                                "type": "object",
                                "properties": {
                                    "x": {"type": "number"},
                                    "y": {"type": "number"}
                                },
                                "required": ["x", "y"]
                            },
                            {"type": "null"}
                        ]
                    },
                    "disabled": {"type": ["boolean", "null"]}
                },
                "additionalProperties": True
            }
        },

        "connections": {
            # Top-level keys: source node names; values: output port maps
            "type": ["object", "null"],
            "additionalProperties": {
                "type": "object"
            }
        }
    },
    "additionalProperties": True
}
