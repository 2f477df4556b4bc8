"""Default construction plan for a mining facility build.

Each phase lists its tasks as ``(name, assigned_role, estimated_days, critical)``.
"""

from __future__ import annotations

from voltbuild.common.enums import AssignedRole

PhaseTemplate = dict

DEFAULT_PLAN: list[PhaseTemplate] = [
    {
        "name": "Site Preparation",
        "description": "Survey, geotechnical work, grading and access roads",
        "tasks": [
            ("Topographic and boundary survey", AssignedRole.ENGINEER, 5, True),
            ("Geotechnical investigation", AssignedRole.ENGINEER, 10, False),
            ("Clearing and grading", AssignedRole.CONTRACTOR, 14, True),
            ("Access road and laydown area", AssignedRole.CONTRACTOR, 10, False),
        ],
    },
    {
        "name": "Utility Interconnection",
        "description": "Interconnection application, studies and energization agreement",
        "tasks": [
            ("Submit interconnection application", AssignedRole.OWNER, 3, True),
            ("System impact study", AssignedRole.UTILITY, 60, True),
            ("Execute interconnection agreement", AssignedRole.OWNER, 14, True),
            ("Utility metering installation", AssignedRole.UTILITY, 10, False),
        ],
    },
    {
        "name": "Electrical Infrastructure",
        "description": "Substation, transformers, switchgear and distribution",
        "tasks": [
            ("Substation design approval", AssignedRole.ENGINEER, 21, True),
            ("Procure main power transformers", AssignedRole.OWNER, 90, True),
            ("Install switchgear and PDUs", AssignedRole.CONTRACTOR, 21, True),
            ("Grounding and cable pulls", AssignedRole.CONTRACTOR, 14, False),
        ],
    },
    {
        "name": "Cooling & Structures",
        "description": "Foundations, containers or buildings and cooling plant",
        "tasks": [
            ("Pour foundations and pads", AssignedRole.CONTRACTOR, 14, True),
            ("Set containers or erect building", AssignedRole.CONTRACTOR, 21, True),
            ("Install cooling system", AssignedRole.CONTRACTOR, 21, False),
            ("Fire protection and security fencing", AssignedRole.CONTRACTOR, 7, False),
        ],
    },
    {
        "name": "Miner Deployment",
        "description": "Network, racking and hashboard installation",
        "tasks": [
            ("Network and fibre backhaul", AssignedRole.CONTRACTOR, 7, False),
            ("Rack and cable miners", AssignedRole.CONTRACTOR, 14, True),
            ("Configure pool and firmware", AssignedRole.ENGINEER, 3, False),
        ],
    },
    {
        "name": "Commissioning",
        "description": "Energization, load testing and ready-for-service sign off",
        "tasks": [
            ("Energization and protection testing", AssignedRole.UTILITY, 5, True),
            ("Staged load ramp", AssignedRole.ENGINEER, 7, True),
            ("Punch list closeout", AssignedRole.CONTRACTOR, 7, False),
            ("Ready-for-service sign off", AssignedRole.OWNER, 1, True),
        ],
    },
]
