"""Entity models shared by storage, adapters, and the API layer."""
from src.models.recipe import (
    EXTERNAL_USER_ID,
    Difficulty,
    Ingredient,
    IngredientCreate,
    IngredientFields,
    Instruction,
    InstructionCreate,
    InstructionFields,
    Recipe,
    RecipeCreate,
    RecipeFields,
    RecipeUpdate,
    utcnow,
)
from src.models.user import ActivityLog, ActivityLogCreate, User, UserCreate, UserUpdate
from src.models.engagement import Favorite, Review, ReviewCreate, ReviewUpdate
from src.models.planning import (
    MealPlan,
    MealPlanCreate,
    MealPlanUpdate,
    MealType,
    ShoppingListItem,
    ShoppingListItemCreate,
    ShoppingListItemUpdate,
    meal_type_ordinal,
)

__all__ = [
    "EXTERNAL_USER_ID",
    "ActivityLog",
    "ActivityLogCreate",
    "Difficulty",
    "Favorite",
    "Ingredient",
    "IngredientCreate",
    "IngredientFields",
    "Instruction",
    "InstructionCreate",
    "InstructionFields",
    "MealPlan",
    "MealPlanCreate",
    "MealPlanUpdate",
    "MealType",
    "Recipe",
    "RecipeCreate",
    "RecipeFields",
    "RecipeUpdate",
    "Review",
    "ReviewCreate",
    "ReviewUpdate",
    "ShoppingListItem",
    "ShoppingListItemCreate",
    "ShoppingListItemUpdate",
    "User",
    "UserCreate",
    "UserUpdate",
    "meal_type_ordinal",
    "utcnow",
]
