"""Request bodies for the user API."""

from pydantic import BaseModel, Field


class WaterIntakeRequest(BaseModel):
    glasses: int


class StepsRequest(BaseModel):
    steps: int


class ExerciseRequest(BaseModel):
    calories_burned: int
    duration_minutes: int
    exercise_type: str = Field(default="general", min_length=1)


class MealRequest(BaseModel):
    name: str
    calories: int
    carbs: float = Field(default=0.0, ge=0)
    protein: float = Field(default=0.0, ge=0)
    fat: float = Field(default=0.0, ge=0)
    fiber: float = Field(default=0.0, ge=0)
    sugar: float = Field(default=0.0, ge=0)


class WeightRequest(BaseModel):
    weight_kg: float
    bmi: float


class SleepRequest(BaseModel):
    hours: float


class GoalsRequest(BaseModel):
    calories_goal: int
    steps_goal: int
    water_glasses_goal: int
