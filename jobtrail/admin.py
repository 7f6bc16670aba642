from django.contrib import admin

# Customize admin site
admin.site.site_header = "Job Trail - Admin Panel"
admin.site.site_title = "Job Trail Admin"
admin.site.index_title = "Job dispatches, audit requests and reference codes"
