# services/api/client/families.py
from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.marker import MarkerCollection
from models.variable import VariableRegistry
from .errors import ApiUnavailableError, SessionExpiredError, ValidationError
from .session import ApiSession

logger = logging.getLogger(__name__)

IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")


@dataclass
class ImageFile:
    filename: str
    content_type: str
    data: bytes

    def to_data_url(self) -> str:
        return f"data:{self.content_type};base64,{base64.b64encode(self.data).decode('ascii')}"


@dataclass
class FamilyRecord:
    """A family as loaded for editing, with its markers hydrated."""
    id: int
    nome: str
    ordem: int = 0
    ativo: bool = True
    foto_url: Optional[str] = None
    esquematico_url: Optional[str] = None
    markers: MarkerCollection = field(default_factory=MarkerCollection)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "FamilyRecord":
        return cls(
            id=int(data["id"]),
            nome=data.get("nome") or "",
            ordem=int(data.get("ordem") or 0),
            ativo=bool(data.get("ativo", True)),
            foto_url=data.get("foto_url"),
            esquematico_url=data.get("esquematico_url"),
            # tolerate JSON text / wrapper objects from older servers
            markers=MarkerCollection.from_raw(data.get("marcadores_vista")),
        )


@dataclass
class FamilyForm:
    """What the family modal submits on save."""
    nome: str
    ordem: int = 0
    familia_id: Optional[int] = None
    markers: MarkerCollection = field(default_factory=MarkerCollection)
    photo: Optional[ImageFile] = None
    schematic: Optional[ImageFile] = None

    @classmethod
    def from_record(cls, record: FamilyRecord) -> "FamilyForm":
        return cls(nome=record.nome, ordem=record.ordem, familia_id=record.id, markers=record.markers)


class FamilyClient:
    """
    Loads and saves family records, marker collection included.

    Saving is one record write (name, order, markers) followed by one
    request per image, only once the record write succeeded.
    """

    def __init__(self, session: ApiSession):
        self.session = session

    # --------------------
    # Reads
    # --------------------
    def list_families(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        url = "/familias/todas" if include_inactive else "/familias"
        return self.session.request("GET", url, not_found_unavailable=True) or []

    def load_family(self, familia_id: int) -> FamilyRecord:
        data = self.session.request("GET", f"/familias/{familia_id}", not_found_unavailable=True)
        return FamilyRecord.from_api(data)

    def list_variables(self) -> VariableRegistry:
        rows = self.session.request("GET", "/variaveis-tecnicas", params={"ativo": "true"}) or []
        return VariableRegistry.from_api(rows)

    # --------------------
    # Save
    # --------------------
    def save_family(self, form: FamilyForm) -> FamilyRecord:
        nome = (form.nome or "").strip()
        if not nome:
            raise ValidationError("Family name is required.")
        for image in (form.photo, form.schematic):
            if image is not None and image.content_type.lower() not in IMAGE_TYPES:
                raise ValidationError("Only images are accepted (JPEG, PNG, GIF, WEBP).")

        payload = {
            "nome": nome,
            "ordem": int(form.ordem or 0),
            "marcadores_vista": form.markers.to_raw(),
        }
        try:
            if form.familia_id is not None:
                data = self.session.request(
                    "PUT", f"/familias/{form.familia_id}", json=payload, not_found_unavailable=True
                )
            else:
                data = self.session.request("POST", "/familias", json=payload, not_found_unavailable=True)
        except ApiUnavailableError as e:
            e.local_record = self._local_record(form, nome)
            logger.warning("Families API unavailable; keeping the edit locally")
            raise

        familia_id = int(data["id"])
        if form.photo is not None:
            data = self.upload_image(familia_id, "foto", form.photo)
        if form.schematic is not None:
            data = self.upload_image(familia_id, "esquematico", form.schematic)
        return FamilyRecord.from_api(data)

    def upload_image(self, familia_id: int, field_name: str, image: ImageFile) -> Dict[str, Any]:
        """
        Multipart upload; on a 4xx rejection retry once as a data URL
        against `<field>-base64`. Only the fallback's failure surfaces.
        """
        response = self.session.send(
            "POST",
            f"/familias/{familia_id}/{field_name}",
            files={field_name: (image.filename, image.data, image.content_type)},
        )
        if response.status_code in (401, 403):
            raise SessionExpiredError(response.status_code)
        if 400 <= response.status_code < 500:
            logger.warning(
                f"Multipart upload of {field_name} rejected ({response.status_code}); retrying as data URL"
            )
            return self.session.request(
                "POST",
                f"/familias/{familia_id}/{field_name}-base64",
                json={"data_url": image.to_data_url()},
                not_found_unavailable=True,
            )
        return self.session.check(response, not_found_unavailable=True).json()

    def deactivate_family(self, familia_id: int) -> None:
        self.session.request("DELETE", f"/familias/{familia_id}", not_found_unavailable=True)

    @staticmethod
    def _local_record(form: FamilyForm, nome: str) -> Dict[str, Any]:
        return {
            "id": form.familia_id if form.familia_id is not None else f"local_{int(time.time() * 1000)}",
            "nome": nome,
            "ordem": int(form.ordem or 0),
            "foto": None,
            "marcadores_vista": form.markers.to_raw(),
        }
