"""Django project package for the Interview Tracker."""
