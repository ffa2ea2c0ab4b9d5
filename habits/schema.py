import graphene
from django.conf import settings
from graphene_django import DjangoObjectType
from graphql import GraphQLError

from .errors import HabitError
from .models import Habit, HabitRecord
from habits.services import habit_stats
from habits.services.repository import DatabaseHabitRepository


def _repository():
    return DatabaseHabitRepository(single_habit=settings.HABITS_SINGLE_HABIT)


def _graphql_error(exc: HabitError) -> GraphQLError:
    return GraphQLError(exc.message, extensions=exc.as_dict())


class HabitStatsType(graphene.ObjectType):
    completed_days = graphene.Int(required=True)
    total_days = graphene.Int(required=True)
    completion_rate = graphene.Float(required=True)
    current_streak = graphene.Int(required=True)
    longest_streak = graphene.Int(required=True)


class DayCellType(graphene.ObjectType):
    day_number = graphene.Int(required=True)
    date = graphene.String(required=True)
    state = graphene.String(required=True)
    completed = graphene.Boolean()
    is_today = graphene.Boolean(required=True)
    is_editable = graphene.Boolean(required=True)

    def resolve_state(self, info):
        return self.state.value


class HabitType(DjangoObjectType):
    completed_days = graphene.Int()
    completed_today = graphene.Boolean()
    last_7_days_count = graphene.Int()
    current_streak = graphene.Int()
    longest_streak = graphene.Int()
    achievement_rate = graphene.Float()
    stats = graphene.Field(HabitStatsType)
    calendar = graphene.List(graphene.NonNull(DayCellType))

    class Meta:
        model = Habit
        fields = ("id", "name", "color", "start_date", "created_at", "updated_at", "records")

    def resolve_completed_days(self, info):
        return habit_stats.completed_days(self)

    def resolve_completed_today(self, info):
        return habit_stats.completed_today(self)

    def resolve_last_7_days_count(self, info):
        return habit_stats.last_7_days_count(self)

    def resolve_current_streak(self, info):
        return habit_stats.current_streak(self)

    def resolve_longest_streak(self, info):
        return habit_stats.longest_streak(self)

    def resolve_achievement_rate(self, info):
        return habit_stats.achievement_rate(self)

    def resolve_stats(self, info):
        return habit_stats.stats_for(self)

    def resolve_calendar(self, info):
        return habit_stats.calendar_for(self)


class HabitRecordType(DjangoObjectType):
    class Meta:
        model = HabitRecord
        fields = ("id", "habit", "date", "completed", "note", "created_at", "updated_at")


class Query(graphene.ObjectType):
    habits = graphene.List(HabitType)
    habit = graphene.Field(HabitType, id=graphene.ID(required=True))
    records = graphene.List(
        HabitRecordType,
        habit_id=graphene.ID(required=True),
        start_date=graphene.String(required=False),
        end_date=graphene.String(required=False),
    )
    calendar = graphene.List(graphene.NonNull(DayCellType), habit_id=graphene.ID(required=True))

    def resolve_habits(self, info):
        qs = _repository().get_habits()
        return habit_stats.with_habit_stats(qs).prefetch_related("records")

    def resolve_habit(self, info, id):
        habit = _repository().get_habit(id)
        if habit is None:
            return None
        qs = habit_stats.with_habit_stats(Habit.objects.all()).prefetch_related("records")
        return qs.get(pk=habit.pk)

    def resolve_records(self, info, habit_id, start_date=None, end_date=None):
        try:
            return _repository().get_records(habit_id, start_date=start_date, end_date=end_date)
        except HabitError as exc:
            raise _graphql_error(exc) from exc

    def resolve_calendar(self, info, habit_id):
        habit = _repository().get_habit(habit_id)
        if habit is None:
            raise GraphQLError("Habit not found")
        return habit_stats.calendar_for(habit)


class CreateHabit(graphene.Mutation):
    class Arguments:
        name = graphene.String(required=True)
        start_date = graphene.String(required=True)
        color = graphene.String(required=False)

    habit = graphene.Field(HabitType)

    def mutate(self, info, name, start_date, color=None):
        try:
            habit = _repository().create_habit(name=name, start_date=start_date, color=color)
        except HabitError as exc:
            raise _graphql_error(exc) from exc
        return CreateHabit(habit=habit)


class UpdateHabit(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        name = graphene.String(required=False)
        color = graphene.String(required=False)
        start_date = graphene.String(required=False)

    habit = graphene.Field(HabitType)

    def mutate(self, info, id, name=None, color=None, start_date=None):
        try:
            habit = _repository().update_habit(id, name=name, color=color, start_date=start_date)
        except HabitError as exc:
            raise _graphql_error(exc) from exc
        return UpdateHabit(habit=habit)


class RecordDay(graphene.Mutation):
    class Arguments:
        habit_id = graphene.ID(required=True)
        date = graphene.String(required=True)
        completed = graphene.Boolean(required=True)
        note = graphene.String(required=False)

    record = graphene.Field(HabitRecordType)
    habit = graphene.Field(HabitType)

    @classmethod
    def mutate(cls, root, info, habit_id, date, completed, note=None):
        try:
            record = _repository().record_day(habit_id=habit_id, date=date, completed=completed, note=note)
        except HabitError as exc:
            raise _graphql_error(exc) from exc
        return cls(record=record, habit=record.habit)


class DeleteHabit(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    ok = graphene.Boolean(required=True)
    deleted_id = graphene.ID(required=True)

    def mutate(self, info, id):
        _repository().delete_habit(id)
        return DeleteHabit(ok=True, deleted_id=id)


class Mutation(graphene.ObjectType):
    create_habit = CreateHabit.Field()
    update_habit = UpdateHabit.Field()
    record_day = RecordDay.Field()
    delete_habit = DeleteHabit.Field()
