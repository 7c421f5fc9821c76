"""
daybook/features/goals/service.py

Yearly goals with key actions. Basic users may hold a limited number of goals
per calendar year of the goal's start date.
"""

from daybook.core.errors import NotFoundError, ValidationError
from daybook.features.collections.service import Bucket, CollectionManager
from daybook.features.documents.store import GOALS_COLLECTION
from daybook.models.entitlement import Quota
from daybook.models.goal import Goal


class GoalManager(CollectionManager[Goal]):
    model = Goal
    collection = GOALS_COLLECTION
    bucket = Bucket.YEAR
    quota = Quota.YEARLY_GOALS
    store_assigns_ids = True

    async def update_progress(self, goal_id: str, current_value: int) -> Goal:
        if current_value < 0:
            raise ValidationError("Progress cannot be negative.")
        goal = self.get(goal_id).model_copy(update={"current_value": current_value})
        goal = goal.model_copy(update={"progress": goal.computed_progress()})
        return await self.update(goal)

    async def toggle_key_action(self, goal_id: str, action_id: str) -> Goal:
        goal = self.get(goal_id)
        actions = []
        found = False
        for action in goal.key_actions:
            if action.id == action_id:
                action = action.model_copy(update={"is_completed": not action.is_completed})
                found = True
            actions.append(action)
        if not found:
            raise NotFoundError(f"key action {action_id} not found")
        return await self.update(goal.model_copy(update={"key_actions": actions}))
