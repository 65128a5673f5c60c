"""
Schema definitions for the input table files.

A schema maps every logical table to the tree holding it and every entity
field to the column it is read from. Trees are flat (one row per entity);
references between tables are row indices, -1 meaning "no reference".

The "o2" schema uses AO2D-style tree and column names, with the event
selection flag and MC labels already joined onto their tables. The "flat"
schema uses the logical names for both trees and columns.
"""

# Logical table -> entity fields read from disk, in the order of the entity
TABLE_FIELDS = {
    "mc_collisions": ["pos_x", "pos_y", "pos_z"],
    "collisions": ["pos_x", "pos_y", "pos_z", "sel8", "mc_collision_id"],
    "tracks": [
        "collision_id", "its_n_cls", "tpc_n_cls_crossed_rows", "dca_xy", "dca_z", "mc_particle_id",
    ],
    "v0s": [
        "collision_id", "pos_track_id", "neg_track_id",
        "x", "y", "z", "px", "py", "pz",
        "dca_v0_daughters", "dca_pos_to_pv", "dca_neg_to_pv",
        "m_k0short", "m_lambda", "m_antilambda",
        "mc_particle_id",
    ],
    "cascades": [
        "collision_id", "v0_link_id", "bachelor_track_id",
        "x", "y", "z", "px", "py", "pz",
        "x_lambda", "y_lambda", "z_lambda", "px_lambda", "py_lambda", "pz_lambda",
        "dca_v0_daughters", "dca_casc_daughters",
        "dca_pos_to_pv", "dca_neg_to_pv", "dca_bach_to_pv",
        "m_xi", "m_omega",
        "mc_particle_id",
    ],
    "v0_links": ["v0_id"],
    "mc_particles": ["mc_collision_id", "pdg_code", "px", "py", "pz", "e"],
}

# Index columns that may hold -1
OPTIONAL_REFERENCES = {
    "collisions": ["mc_collision_id"],
    "tracks": ["collision_id", "mc_particle_id"],
    "v0s": ["mc_particle_id"],
    "cascades": ["v0_link_id", "mc_particle_id"],
    "v0_links": ["v0_id"],
}

_VERTEX_COLUMNS = {"pos_x": "fPosX", "pos_y": "fPosY", "pos_z": "fPosZ"}
_MOMENTUM_COLUMNS = {"px": "fPx", "py": "fPy", "pz": "fPz"}
_DECAY_VERTEX_COLUMNS = {"x": "fX", "y": "fY", "z": "fZ"}

O2_SCHEMA = {
    "mc_collisions": {
        "tree": "O2mccollision",
        "columns": dict(_VERTEX_COLUMNS),
    },
    "collisions": {
        "tree": "O2collision",
        "columns": {
            **_VERTEX_COLUMNS,
            "sel8": "fSel8",
            "mc_collision_id": "fIndexMcCollisions",
        },
    },
    "tracks": {
        "tree": "O2track",
        "columns": {
            "collision_id": "fIndexCollisions",
            "its_n_cls": "fITSNCls",
            "tpc_n_cls_crossed_rows": "fTPCNClsCrossedRows",
            "dca_xy": "fDcaXY",
            "dca_z": "fDcaZ",
            "mc_particle_id": "fIndexMcParticles",
        },
    },
    "v0s": {
        "tree": "O2v0data",
        "columns": {
            "collision_id": "fIndexCollisions",
            "pos_track_id": "fIndexTracks_Pos",
            "neg_track_id": "fIndexTracks_Neg",
            **_DECAY_VERTEX_COLUMNS,
            **_MOMENTUM_COLUMNS,
            "dca_v0_daughters": "fDCAV0Daughters",
            "dca_pos_to_pv": "fDCAPosToPV",
            "dca_neg_to_pv": "fDCANegToPV",
            "m_k0short": "fMK0Short",
            "m_lambda": "fMLambda",
            "m_antilambda": "fMAntiLambda",
            "mc_particle_id": "fIndexMcParticles",
        },
    },
    "cascades": {
        "tree": "O2cascdata",
        "columns": {
            "collision_id": "fIndexCollisions",
            "v0_link_id": "fIndexV0s",
            "bachelor_track_id": "fIndexTracks",
            **_DECAY_VERTEX_COLUMNS,
            **_MOMENTUM_COLUMNS,
            "x_lambda": "fXLambda",
            "y_lambda": "fYLambda",
            "z_lambda": "fZLambda",
            "px_lambda": "fPxLambda",
            "py_lambda": "fPyLambda",
            "pz_lambda": "fPzLambda",
            "dca_v0_daughters": "fDCAV0Daughters",
            "dca_casc_daughters": "fDCACascDaughters",
            "dca_pos_to_pv": "fDCAPosToPV",
            "dca_neg_to_pv": "fDCANegToPV",
            "dca_bach_to_pv": "fDCABachToPV",
            "m_xi": "fMXi",
            "m_omega": "fMOmega",
            "mc_particle_id": "fIndexMcParticles",
        },
    },
    "v0_links": {
        "tree": "O2v0linked",
        "columns": {"v0_id": "fIndexV0Datas"},
    },
    "mc_particles": {
        "tree": "O2mcparticle",
        "columns": {
            "mc_collision_id": "fIndexMcCollisions",
            "pdg_code": "fPdgCode",
            **_MOMENTUM_COLUMNS,
            "e": "fE",
        },
    },
}

FLAT_SCHEMA = {
    table: {"tree": table, "columns": {name: name for name in fields}}
    for table, fields in TABLE_FIELDS.items()
}

SCHEMAS = {
    "o2": O2_SCHEMA,
    "flat": FLAT_SCHEMA,
}


def get_schema(name: str) -> dict:
    """
    Look up a schema by name.

    Raises:
        KeyError: If the schema is unknown
    """
    if name not in SCHEMAS:
        raise KeyError(f"Unknown input schema '{name}'. Available: {sorted(SCHEMAS)}")
    return SCHEMAS[name]
