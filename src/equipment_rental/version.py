"""Version metadata for EquipmentRental."""

__app_name__ = "Equipment Rental Manager"
__company__ = "Centering Plates Rental Co."
__version__ = "1.0.0"
