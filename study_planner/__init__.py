"""Study planner backend: weekly slots, daily tasks and the study-hours ledger"""
