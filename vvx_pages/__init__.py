"""Static weather, tide and astronomy pages for the VVX signage panel."""
