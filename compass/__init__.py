"""Budget, goal and spending calculations for the Fiscal Compass tracker."""
