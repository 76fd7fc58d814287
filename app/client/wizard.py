"""
Multi-step listing wizard.

Each step validates its field group with the same Pydantic step model the API
composes into ``PropertyCreate``, so a draft that passes every step here is
accepted by the server's schema as well.
"""

from typing import Any, Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError as PydanticValidationError

from app.client.api import MarketplaceClient
from app.schemas.image import PropertyImageInput
from app.schemas.property import FormStep, PropertyCreate, STEP_MODELS
from app.utils.error_classifier import ClassifiedError, classify_error, validation_details

logger = logging.getLogger(__name__)

STEPS: List[FormStep] = list(FormStep)

DRAFT_FIELDS = [name for name in PropertyCreate.model_fields if name != "staging_id"]
IMAGE_FIELDS = list(PropertyImageInput.model_fields)


class PropertyWizard:
    """
    Draft state for creating a listing, or editing one when ``property_id`` is given.

    Args:
        client: API client used for the single submit call
        property_id: Listing being edited; None for create mode
        initial: Starting values, typically a property response in edit mode
    """

    def __init__(
        self,
        client: MarketplaceClient,
        property_id: Optional[uuid.UUID] = None,
        initial: Optional[Dict[str, Any]] = None
    ):
        self.client = client
        self.property_id = property_id
        self.staging_id: Optional[uuid.UUID] = None
        self.values: Dict[str, Any] = self._draft_from(initial or {})
        self._initial_images = self._image_snapshot()
        self.current_index = 0
        self.step_validity: Dict[FormStep, bool] = {step: False for step in STEPS}
        self.errors: Dict[str, str] = {}
        self.is_submitting = False
        self.submit_error: Optional[ClassifiedError] = None
        self.last_result: Optional[Dict[str, Any]] = None

    @staticmethod
    def _draft_from(data: Dict[str, Any]) -> Dict[str, Any]:
        draft = {key: data[key] for key in DRAFT_FIELDS if key in data and data[key] is not None}
        if "images" in draft:
            draft["images"] = [
                {key: image[key] for key in IMAGE_FIELDS if key in image}
                for image in draft["images"]
            ]
        return draft

    def _image_snapshot(self) -> List[Dict[str, Any]]:
        return [dict(image) for image in self.values.get("images", [])]

    @property
    def is_edit_mode(self) -> bool:
        return self.property_id is not None

    @property
    def current_step(self) -> FormStep:
        return STEPS[self.current_index]

    @property
    def is_first_step(self) -> bool:
        return self.current_index == 0

    @property
    def is_last_step(self) -> bool:
        return self.current_index == len(STEPS) - 1

    @property
    def can_submit(self) -> bool:
        return self.is_last_step and not self.is_submitting

    @property
    def images_changed(self) -> bool:
        """Whether the image set differs from the one the draft was loaded with."""
        return self.values.get("images", []) != self._initial_images

    def _form_values(self) -> Dict[str, Any]:
        # An edit that leaves the images alone neither checks nor sends them
        if self.is_edit_mode and not self.images_changed:
            return {key: value for key, value in self.values.items() if key != "images"}
        return self.values

    def update(self, **values: Any) -> None:
        """Merge field values into the draft. Errors on the changed fields are cleared."""
        self.values.update(values)
        for field in values:
            self._clear_errors([field])

    def _clear_errors(self, fields: List[str]) -> None:
        for key in list(self.errors):
            if key.split(".")[0] in fields:
                del self.errors[key]

    def validate_step(self, step: Optional[FormStep] = None) -> bool:
        """Validate one step's field group, recording per-field errors."""
        step = step or self.current_step
        model = STEP_MODELS[step]
        fields = list(model.model_fields)
        self._clear_errors(fields)
        values = self._form_values()

        try:
            model.model_validate({key: values[key] for key in fields if key in values})
        except PydanticValidationError as e:
            for detail in validation_details(e.errors()):
                self.errors.setdefault(detail["field"], detail["message"])
            self.step_validity[step] = False
            return False

        self.step_validity[step] = True
        return True

    def advance(self) -> bool:
        if self.is_last_step or not self.validate_step():
            return False
        self.current_index += 1
        return True

    def retreat(self) -> bool:
        if self.is_first_step:
            return False
        self.current_index -= 1
        return True

    def _payload(self) -> Dict[str, Any]:
        data = PropertyCreate.model_validate({**self._form_values(), "staging_id": self.staging_id})
        if self.is_edit_mode:
            exclude = {"staging_id"} if self.images_changed else {"staging_id", "images"}
            return data.model_dump(mode="json", exclude=exclude)
        return data.model_dump(mode="json", exclude_none=True)

    def reset(self) -> None:
        self.values = {}
        self._initial_images = []
        self.staging_id = None
        self.current_index = 0
        self.step_validity = {step: False for step in STEPS}
        self.errors = {}

    async def submit(self) -> Optional[Dict[str, Any]]:
        """
        Send the draft with exactly one create or update call.

        Returns:
            The server's property on success, None when refused or failed.
            Failures are classified into ``submit_error`` and the draft is kept.
        """
        if self.is_submitting:
            logger.debug("Submit refused: a submission is already in flight")
            return None
        if not self.is_last_step:
            return None

        results = [self.validate_step(step) for step in STEPS]
        if not all(results):
            return None

        self.is_submitting = True
        self.submit_error = None
        try:
            payload = self._payload()
            if self.is_edit_mode:
                result = await self.client.update_property(self.property_id, payload)
            else:
                result = await self.client.create_property(payload)
        except Exception as e:
            self.submit_error = classify_error(e)
            self.errors.update(self.submit_error.field_errors())
            logger.warning(f"Property submit failed: {self.submit_error.code.value} {self.submit_error.message}")
            return None
        finally:
            self.is_submitting = False

        self.last_result = result
        if self.is_edit_mode:
            self.values = self._draft_from(result)
            self._initial_images = self._image_snapshot()
        else:
            self.reset()
        return result
