# customers/models/vehicle.py

import uuid

from django.db import models

from catalog.services.pricing import VEHICLE_SIZE_CHOICES
from .customer import Customer


class Vehicle(models.Model):
    """
    Customer vehicle.

    size_class drives vehicle-size-aware service pricing. It may be blank for
    motorcycles/boats etc. where size pricing does not apply.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="vehicles",
    )

    year = models.PositiveIntegerField(null=True, blank=True)
    make = models.CharField(max_length=64, blank=True)
    model = models.CharField(max_length=64, blank=True)
    color = models.CharField(max_length=32, blank=True)

    size_class = models.CharField(
        max_length=32,
        choices=VEHICLE_SIZE_CHOICES,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def description(self) -> str:
        parts = [str(self.year) if self.year else "", self.make, self.model]
        return " ".join(p for p in parts if p) or "Vehicle"

    def __str__(self):
        return self.description
